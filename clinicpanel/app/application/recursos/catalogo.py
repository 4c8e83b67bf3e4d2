# application/recursos/catalogo.py
"""
Catálogo de recursos de la clínica.

Cada entrada configura el controlador genérico: endpoint, campos del
formulario, columnas de la tabla, lookups y mensajes de error tal y como los
muestra el panel.
"""

from __future__ import annotations

from datetime import date

from clinicpanel.app.domain.recursos import (
    CampoDef,
    ColumnaDef,
    FormatoColumna,
    LookupDef,
    MensajesRecurso,
    Operacion,
    RecursoDef,
    TipoCampo,
)

# ------------------------------------------------------------
# Lookups compartidos
# ------------------------------------------------------------

LOOKUP_PACIENTES = LookupDef("pacientes", "pacientes", ("nombre", "apellido"), "Error al cargar pacientes")
LOOKUP_MEDICOS = LookupDef("medicos", "personal", ("nombre", "apellido"), "Error al cargar médicos")
LOOKUP_PERSONAL = LookupDef("personal", "personal", ("nombre", "apellido"), "Error al cargar personal")
LOOKUP_MEDICAMENTOS = LookupDef("medicamentos", "medicamentos", ("nombre",), "Error al cargar medicamentos")

ESTADOS_CITA = ("Programada", "Completada", "Cancelada")
ESTADOS_FACTURA = ("Pendiente", "Pagada", "Cancelada")
ESTADOS_TRATAMIENTO = ("En curso", "Completado", "Cancelado")
DIAS_SEMANA = ("Lunes", "Martes", "Miércoles", "Jueves", "Viernes", "Sábado", "Domingo")
ESPECIALIDADES = (
    "Médico General",
    "Pediatra",
    "Cardiólogo",
    "Dermatólogo",
    "Ginecólogo",
    "Oftalmólogo",
    "Psiquiatra",
    "Cirujano",
    "Enfermero",
)


def _hoy() -> str:
    return date.today().isoformat()


def _mensajes(plural: str, singular: str, detalle: str, *, eliminar: str | None = None) -> MensajesRecurso:
    return MensajesRecurso(
        cargar=f"Error al cargar {plural}",
        detalle=f"Error al obtener detalles {detalle}",
        crear=f"Error al crear {singular}",
        actualizar=f"Error al actualizar {singular}",
        eliminar=eliminar or f"Error al eliminar {singular}",
    )


def _paciente() -> CampoDef:
    return CampoDef("pacienteId", "Paciente", TipoCampo.REFERENCIA, lookup="pacientes", campo_nombre="pacienteNombre")


def _medico() -> CampoDef:
    return CampoDef("medicoId", "Médico", TipoCampo.REFERENCIA, lookup="medicos", campo_nombre="medicoNombre")


def _nombre(campo: str, etiqueta: str) -> CampoDef:
    # Nombre desnormalizado: lo rellena el selector de la referencia.
    return CampoDef(campo, etiqueta, editable=False)


PACIENTES = RecursoDef(
    clave="pacientes",
    ruta="pacientes",
    titulo="Pacientes",
    singular="Paciente",
    descripcion="Administrar información de pacientes",
    campos=(
        CampoDef("nombre", "Nombre"),
        CampoDef("apellido", "Apellido"),
        CampoDef("fechaNacimiento", "Fecha de Nacimiento", TipoCampo.FECHA),
        CampoDef("telefono", "Teléfono"),
        CampoDef("email", "Email", TipoCampo.EMAIL),
    ),
    columnas=(
        ColumnaDef("nombre", "Nombre"),
        ColumnaDef("apellido", "Apellido"),
        ColumnaDef("email", "Email"),
    ),
    mensajes=_mensajes("pacientes", "paciente", "del paciente"),
)

PERSONAL = RecursoDef(
    clave="personal",
    ruta="personal",
    titulo="Personal",
    singular="Personal",
    descripcion="Gestionar personal médico",
    campos=(
        CampoDef("nombre", "Nombre"),
        CampoDef("apellido", "Apellido"),
        CampoDef("especialidad", "Especialidad", TipoCampo.OPCION, opciones=ESPECIALIDADES),
        CampoDef("email", "Email", TipoCampo.EMAIL),
        CampoDef("telefono", "Teléfono"),
    ),
    columnas=(
        ColumnaDef("nombre", "Nombre"),
        ColumnaDef("apellido", "Apellido"),
        ColumnaDef("especialidad", "Especialidad"),
        ColumnaDef("email", "Email"),
    ),
    mensajes=_mensajes("personal", "personal", "del personal"),
)

CITAS = RecursoDef(
    clave="citas",
    ruta="citas",
    titulo="Citas",
    singular="Cita",
    descripcion="Agendar y gestionar citas médicas",
    campos=(
        _paciente(),
        _nombre("pacienteNombre", "Paciente"),
        _medico(),
        _nombre("medicoNombre", "Médico"),
        CampoDef("fecha", "Fecha", TipoCampo.FECHA),
        CampoDef("hora", "Hora", TipoCampo.HORA),
        CampoDef("motivo", "Motivo", TipoCampo.TEXTO_LARGO),
        CampoDef("estado", "Estado", TipoCampo.ENUM, opciones=ESTADOS_CITA),
    ),
    columnas=(
        ColumnaDef("pacienteNombre", "Paciente"),
        ColumnaDef("medicoNombre", "Médico"),
        ColumnaDef("fecha", "Fecha", FormatoColumna.FECHA),
        ColumnaDef("hora", "Hora"),
        ColumnaDef("estado", "Estado"),
    ),
    mensajes=_mensajes("citas", "cita", "de la cita", eliminar="Error al cancelar cita"),
    lookups=(LOOKUP_PACIENTES, LOOKUP_MEDICOS),
)

DIAGNOSTICOS = RecursoDef(
    clave="diagnosticos",
    ruta="diagnosticos",
    titulo="Diagnósticos",
    singular="Diagnóstico",
    descripcion="Registrar y consultar diagnósticos",
    campos=(
        _paciente(),
        _nombre("pacienteNombre", "Paciente"),
        _medico(),
        _nombre("medicoNombre", "Médico"),
        CampoDef("fecha", "Fecha", TipoCampo.FECHA),
        CampoDef("descripcion", "Descripción", TipoCampo.TEXTO_LARGO),
        CampoDef("tratamiento", "Tratamiento", TipoCampo.TEXTO_LARGO),
    ),
    columnas=(
        ColumnaDef("pacienteNombre", "Paciente"),
        ColumnaDef("medicoNombre", "Médico"),
        ColumnaDef("fecha", "Fecha", FormatoColumna.FECHA),
    ),
    mensajes=_mensajes("diagnósticos", "diagnóstico", "del diagnóstico"),
    lookups=(LOOKUP_PACIENTES, LOOKUP_MEDICOS),
)

TRATAMIENTOS = RecursoDef(
    clave="tratamientos",
    ruta="tratamientos",
    titulo="Tratamientos",
    singular="Tratamiento",
    descripcion="Administrar tratamientos médicos",
    campos=(
        _paciente(),
        _nombre("pacienteNombre", "Paciente"),
        _medico(),
        _nombre("medicoNombre", "Médico"),
        CampoDef("fechaInicio", "Fecha de Inicio", TipoCampo.FECHA),
        CampoDef("fechaFin", "Fecha de Fin", TipoCampo.FECHA),
        CampoDef("descripcion", "Descripción", TipoCampo.TEXTO_LARGO),
        CampoDef("estado", "Estado", TipoCampo.ENUM, opciones=ESTADOS_TRATAMIENTO),
    ),
    columnas=(
        ColumnaDef("pacienteNombre", "Paciente"),
        ColumnaDef("medicoNombre", "Médico"),
        ColumnaDef("fechaInicio", "Fecha Inicio", FormatoColumna.FECHA),
        ColumnaDef("estado", "Estado"),
    ),
    mensajes=_mensajes("tratamientos", "tratamiento", "del tratamiento"),
    lookups=(LOOKUP_PACIENTES, LOOKUP_MEDICOS),
)

MEDICAMENTOS = RecursoDef(
    clave="medicamentos",
    ruta="medicamentos",
    titulo="Medicamentos",
    singular="Medicamento",
    descripcion="Gestionar inventario de medicamentos",
    campos=(
        CampoDef("nombre", "Nombre"),
        CampoDef("descripcion", "Descripción", TipoCampo.TEXTO_LARGO),
        CampoDef("dosis", "Dosis"),
        CampoDef("efectosSecundarios", "Efectos Secundarios", TipoCampo.TEXTO_LARGO),
        CampoDef("contraindicaciones", "Contraindicaciones", TipoCampo.TEXTO_LARGO),
    ),
    columnas=(
        ColumnaDef("nombre", "Nombre"),
        ColumnaDef("descripcion", "Descripción"),
    ),
    mensajes=_mensajes("medicamentos", "medicamento", "del medicamento"),
)

INVENTARIO = RecursoDef(
    clave="inventario",
    ruta="inventario",
    titulo="Inventario",
    singular="Registro de Inventario",
    descripcion="Existencias por lote y caducidad",
    campos=(
        CampoDef(
            "medicamentoId",
            "Medicamento",
            TipoCampo.REFERENCIA,
            lookup="medicamentos",
            campo_nombre="medicamentoNombre",
        ),
        _nombre("medicamentoNombre", "Medicamento"),
        CampoDef("cantidad", "Cantidad", TipoCampo.NUMERO),
        CampoDef("fechaCaducidad", "Fecha de Caducidad", TipoCampo.FECHA),
        CampoDef("lote", "Lote"),
    ),
    columnas=(
        ColumnaDef("medicamentoNombre", "Medicamento"),
        ColumnaDef("cantidad", "Cantidad"),
        ColumnaDef("fechaCaducidad", "Fecha de Caducidad", FormatoColumna.FECHA),
        ColumnaDef("lote", "Lote"),
    ),
    mensajes=MensajesRecurso(
        cargar="Error al cargar inventario",
        detalle="Error al obtener detalles del inventario",
        crear="Error al crear registro de inventario",
        actualizar="Error al actualizar registro de inventario",
        eliminar="Error al eliminar registro de inventario",
    ),
    lookups=(LOOKUP_MEDICAMENTOS,),
    operaciones=Operacion.LISTAR | Operacion.CREAR,
    encabezado="Inventario de Medicamentos",
)

RECETAS = RecursoDef(
    clave="recetas",
    ruta="recetas",
    titulo="Recetas",
    singular="Receta",
    descripcion="Crear y gestionar recetas médicas",
    campos=(
        _paciente(),
        _nombre("pacienteNombre", "Paciente"),
        _medico(),
        _nombre("medicoNombre", "Médico"),
        CampoDef("fecha", "Fecha", TipoCampo.FECHA, por_defecto=_hoy),
        CampoDef("medicamentos", "Medicamentos", TipoCampo.LISTA, lookup="medicamentos"),
        CampoDef("instrucciones", "Instrucciones", TipoCampo.TEXTO_LARGO),
    ),
    columnas=(
        ColumnaDef("pacienteNombre", "Paciente"),
        ColumnaDef("medicoNombre", "Médico"),
        ColumnaDef("fecha", "Fecha", FormatoColumna.FECHA),
    ),
    mensajes=_mensajes("recetas", "receta", "de la receta"),
    lookups=(LOOKUP_PACIENTES, LOOKUP_MEDICOS, LOOKUP_MEDICAMENTOS),
)

EXAMENES = RecursoDef(
    clave="examenes",
    ruta="examenes",
    titulo="Exámenes",
    singular="Examen",
    descripcion="Administrar exámenes médicos",
    campos=(
        _paciente(),
        _nombre("pacienteNombre", "Paciente"),
        _medico(),
        _nombre("medicoNombre", "Médico"),
        CampoDef("fecha", "Fecha", TipoCampo.FECHA),
        CampoDef("tipo", "Tipo de Examen"),
        CampoDef("resultados", "Resultados", TipoCampo.TEXTO_LARGO),
        CampoDef("observaciones", "Observaciones", TipoCampo.TEXTO_LARGO),
    ),
    columnas=(
        ColumnaDef("pacienteNombre", "Paciente"),
        ColumnaDef("medicoNombre", "Médico"),
        ColumnaDef("fecha", "Fecha", FormatoColumna.FECHA),
        ColumnaDef("tipo", "Tipo"),
    ),
    mensajes=_mensajes("exámenes", "examen", "del examen"),
    lookups=(LOOKUP_PACIENTES, LOOKUP_MEDICOS),
)

FACTURAS = RecursoDef(
    clave="facturas",
    ruta="facturas",
    titulo="Facturación",
    singular="Factura",
    descripcion="Gestionar facturación de servicios",
    campos=(
        _paciente(),
        _nombre("pacienteNombre", "Paciente"),
        CampoDef("fecha", "Fecha", TipoCampo.FECHA),
        CampoDef("monto", "Monto", TipoCampo.NUMERO),
        CampoDef("estado", "Estado", TipoCampo.ENUM, opciones=ESTADOS_FACTURA),
        CampoDef("detalles", "Detalles", TipoCampo.TEXTO_LARGO),
    ),
    columnas=(
        ColumnaDef("pacienteNombre", "Paciente"),
        ColumnaDef("fecha", "Fecha", FormatoColumna.FECHA),
        ColumnaDef("monto", "Monto", FormatoColumna.MONEDA),
        ColumnaDef("estado", "Estado"),
    ),
    mensajes=_mensajes("facturas", "factura", "de la factura"),
    lookups=(LOOKUP_PACIENTES,),
)

HORARIOS = RecursoDef(
    clave="horarios",
    ruta="horarios",
    titulo="Horarios",
    singular="Horario",
    descripcion="Administrar horarios del personal",
    campos=(
        CampoDef("personalId", "Personal", TipoCampo.REFERENCIA, lookup="personal", campo_nombre="personalNombre"),
        _nombre("personalNombre", "Personal"),
        CampoDef("dia", "Día", TipoCampo.OPCION, opciones=DIAS_SEMANA),
        CampoDef("horaInicio", "Hora de Inicio", TipoCampo.HORA),
        CampoDef("horaFin", "Hora de Fin", TipoCampo.HORA),
    ),
    columnas=(
        ColumnaDef("personalNombre", "Personal"),
        ColumnaDef("dia", "Día"),
        ColumnaDef("horaInicio", "Hora Inicio"),
        ColumnaDef("horaFin", "Hora Fin"),
    ),
    mensajes=_mensajes("horarios", "horario", "del horario"),
    lookups=(LOOKUP_PERSONAL,),
)

USUARIOS = RecursoDef(
    clave="usuarios",
    ruta="usuarios",
    titulo="Usuarios",
    singular="Usuario",
    descripcion="Gestionar usuarios del sistema",
    campos=(
        CampoDef("name", "Nombre", editable=False),
        CampoDef("email", "Email", TipoCampo.EMAIL, editable=False),
    ),
    columnas=(
        ColumnaDef("name", "Nombre"),
        ColumnaDef("email", "Email"),
    ),
    mensajes=_mensajes("usuarios", "usuario", "del usuario"),
    operaciones=Operacion.LISTAR | Operacion.ELIMINAR,
    encabezado="Lista de Usuarios",
)

# Orden del menú principal. El inventario vive como pestaña de Medicamentos.
MENU = (
    USUARIOS,
    PACIENTES,
    PERSONAL,
    CITAS,
    DIAGNOSTICOS,
    TRATAMIENTOS,
    MEDICAMENTOS,
    RECETAS,
    EXAMENES,
    FACTURAS,
    HORARIOS,
)

CATALOGO: tuple[RecursoDef, ...] = MENU + (INVENTARIO,)


def get_recurso(clave: str) -> RecursoDef:
    for recurso in CATALOGO:
        if recurso.clave == clave:
            return recurso
    raise KeyError(f"Recurso desconocido: {clave}")

"""
Legal and business text printed on rental documents.

Text is data: templates with str.format placeholders that are filled from
BusinessConfig (company identity, rates, addresses) and from the document
being assembled (dates, amounts, customer identity). Wording changes happen
here only; the assemblers never embed contract prose.

Placeholders available in every template (see `legal_values`):
    legal_name, company_tax_id, signatory, signatory_tax_id, legal_address,
    pickup_address, notices_email, platform_url, deposit_pct, balance_pct
"""

from dataclasses import dataclass
from typing import Tuple, Union

from ..core.business import BusinessConfig


# ── Paragraph markers used inside clauses ──

@dataclass(frozen=True)
class Heading:
    """Bold lead line inside a clause."""
    text: str


@dataclass(frozen=True)
class Labeled:
    """`label` in bold followed by `value` on the same line."""
    label: str
    value: str


@dataclass(frozen=True)
class BankDetails:
    """Placeholder for the company bank block."""


Paragraph = Union[str, Heading, Labeled, BankDetails]


@dataclass(frozen=True)
class Clause:
    title: str
    paragraphs: Tuple[Paragraph, ...]


@dataclass(frozen=True)
class AnnexText:
    validity: str
    lead: str                     # bold line before the logistics block, "" for none
    logistics: Tuple[str, ...]
    value: str
    clauses: Tuple[Clause, ...]


def legal_values(config: BusinessConfig, **extra) -> dict:
    values = {
        "legal_name": config.company.legal_name,
        "company_tax_id": config.company.tax_id,
        "signatory": config.signatory.name,
        "signatory_tax_id": config.signatory.tax_id,
        "legal_address": config.company.legal_address,
        "pickup_address": config.company.pickup_address,
        "notices_email": config.company.notices_email,
        "platform_url": config.branding.platform_url,
        "deposit_pct": config.deposit_percent,
        "balance_pct": config.balance_percent,
    }
    values.update(extra)
    return values


def fill(template: str, values: dict) -> str:
    return template.format(**values)


# ═══════════════════════════════════════════════════════════════════════════════
# ORDER DOCUMENTS
# ═══════════════════════════════════════════════════════════════════════════════

TERMS_TITLE = "ACEPTACIÓN DE CONDICIONES"
TERMS_BODY = (
    "Al aceptar el valor del presupuesto y realizar el abono de reserva, el "
    "arrendatario acepta plenamente todas las condiciones de arriendo y la "
    "política por daño"
)

NOTICE_TITLE = "IMPORTANTE"
NOTICE_BODY = (
    "Estamos revisando la disponibilidad de los equipos seleccionados. "
    "Muy pronto te confirmaremos su disponibilidad."
)

NO_ADDITIONAL_INFO = "No hay información adicional"
COMMENTS_BELOW = "Ver comentarios a continuación."

_VALIDITY = (
    "El presente Contrato comenzará a regir con fecha {start} y finalizará el "
    "{end}, salvo las partes acuerden su extensión, lo que debe constar en "
    "Anexo del presente Contrato."
)
_DELIVERY = (
    "Los bienes muebles objeto del presente contrato serán entregados por el "
    "ARRENDADOR a partir de las 15:00 horas del día anterior al inicio del "
    "período de arriendo, en {pickup_address}."
)
_RETURN = (
    "El ARRENDATARIO deberá devolver los equipos y sus accesorios a más tardar "
    "a la 1:00 PM del día siguiente a la finalizada su jornada de arriendo, en "
    "el mismo lugar de entrega."
)
_VALUE = (
    "Valor total del arriendo {subtotal} + {tax} IVA. {deposit} es la reserva "
    "por el arriendo de los bienes, lo cual corresponde al {deposit_pct}% del "
    "valor total del arriendo."
)
_LATE_FEE = (
    "En caso de incumplimiento de devolución en fecha acordada, se aplicará "
    "una multa equivalente al valor de un día de arriendo por cada día de "
    "retraso"
)

CONTRACT_ANNEX = AnnexText(
    validity=_VALIDITY,
    lead="",
    logistics=(
        "Salvo las partes expresamente acuerden otra cosa: " + _DELIVERY,
        _RETURN + " La devolución deberá realizarse con previo aviso para "
        "coordinar el día y la hora de revisión de los equipos arrendados.",
    ),
    value=_VALUE,
    clauses=(
        Clause("Uso del Equipo", (
            "No se permite subarrendar, modificar ni ceder los equipos sin "
            "autorización del arrendador. El incumplimiento de estas "
            "condiciones puede dar lugar a la terminación del contrato.",
        )),
        Clause("Entrega y Devolución de Equipos", (
            "La devolución se realiza en la dirección del arrendador, según lo "
            "estipulado en el Anexo. Los equipos deben ser devueltos en el "
            "mismo estado en que fueron entregados, limpios y secos. El horario "
            "atención a publico es a partir de las 8:00 a 20:00 los 7 dias de "
            "la semana, en {pickup_address}.",
        )),
        Clause("Multa por retraso", (
            _LATE_FEE + " en la devolución de los bienes.",
        )),
        Clause("Pago y Reserva", (
            "Se debe pagar una reserva del {deposit_pct}% al confirmar el "
            "arriendo. El saldo restante, correspondiente al {balance_pct}% del "
            "valor total del arriendo, deberá ser pagado en su totalidad antes o "
            "en el momento de la devolución por parte de la ARRENDATARIA de los "
            "bienes arrendados. Si el arrendatario cancela con menos de 48 horas "
            "de anticipación, no se reembolsa la reserva. Pagos mediante "
            "transferencia bancaria u otros métodos en la plataforma.",
        )),
        Clause("Responsabilidad por Daños y Reparaciones", (
            "El arrendatario es responsable de los equipos desde su retiro hasta "
            "su devolución. En caso de daños, debe pagar la reparación en un "
            "servicio técnico autorizado o reponer el equipo. Si hay destrucción "
            "total o pérdida del equipo, el arrendatario debe pagar su valor "
            "total. Si los equipos se devuelven sucios o húmedos, el arrendador "
            "puede cobrar costos de limpieza y reparación. Plazo para reparación "
            "o reposición: Máximo 10 días hábiles.",
        )),
        Clause("Obligaciones de las Partes", (
            "Arrendador: Entregar los equipos en óptimas condiciones. Mantener "
            "los equipos en estado operativo antes del arriendo.",
            "Arrendatario: Revisar los equipos al momento de la entrega. Usarlos "
            "exclusivamente para los fines declarados. No modificar ni realizar "
            "mejoras sin autorización. Asumir responsabilidad por daños o "
            "pérdidas. Notificar de inmediato cualquier daño o pérdida.",
        )),
        Clause("Resolución del Contrato", (
            "Puede terminarse por mutuo acuerdo o por incumplimiento de alguna "
            "de las partes. Si el arrendador detecta una infracción grave, puede "
            "cancelar el contrato y eliminar la cuenta del usuario en la "
            "plataforma. La resolución no exime al arrendatario de sus "
            "obligaciones pendientes.",
        )),
        Clause("Legislación Aplicable y Notificaciones", (
            "El contrato se rige por la legislación chilena y los tribunales de "
            "Santiago.",
        )),
    ),
)

PROCESSING_ANNEX = AnnexText(
    validity=_VALIDITY,
    lead="Salvo las partes expresamente acuerden otra cosa:",
    logistics=(_DELIVERY + " " + _RETURN,),
    value=_VALUE,
    clauses=(
        Clause("Uso del Equipo", (
            "No se permite subarrendar, modificar ni ceder los equipos sin "
            "autorización del arrendador.",
        )),
        Clause("Entrega y Devolución", (
            "Los equipos deben ser devueltos en el mismo estado en que fueron "
            "entregados, limpios y secos. Horario atención: 8:00 a 20:00 los 7 "
            "días de la semana, en {pickup_address}.",
        )),
        Clause("Multa por retraso", (_LATE_FEE + ".",)),
        Clause("Pago y Reserva", (
            "Se debe pagar una reserva del {deposit_pct}% al confirmar el "
            "arriendo. El saldo restante ({balance_pct}%) deberá ser pagado antes "
            "o en el momento de la devolución. Si cancela con menos de 48 horas "
            "de anticipación, no se reembolsa la reserva.",
        )),
        Clause("Responsabilidad por Daños", (
            "El arrendatario es responsable de los equipos desde su retiro hasta "
            "su devolución. En caso de daños, debe pagar la reparación o reponer "
            "el equipo. Plazo: Máximo 10 días hábiles.",
        )),
    ),
)


# ═══════════════════════════════════════════════════════════════════════════════
# STANDALONE CUSTOMER CONTRACT
# ═══════════════════════════════════════════════════════════════════════════════

CONTRACT_HEADING = "CONTRATO DE ARRIENDO DE BIENES MUEBLES"

INTRO = (
    "En Santiago de Chile, a {date}, comparecen por una parte {legal_name}, Rol "
    "Único Tributario N° {company_tax_id}, representada legalmente por "
    "{signatory}, cédula de identidad nacional N° {signatory_tax_id}, ambos con "
    "domicilio para estos efectos en {legal_address}, en adelante \"LA PARTE "
    "ARRENDADORA\" o \"LA ARRENDADORA\"; y por la otra, {counterparty}"
    "cédula de identidad nacional N° {customer_tax_id}, {both}con domicilio en "
    "{customer_address}, en adelante \"LA PARTE ARRENDATARIA\" o \"EL "
    "ARRENDATARIO\""
)
# Inserted before the customer's own name when the customer is a company.
INTRO_COMPANY = (
    "{company_name}, Rol Único Tributario N° {company_rut}, representada "
    "legalmente por "
)

PARTIES = (
    "La parte ARRENDADORA y la parte ARRENDATARIA, que en adelante podrán ser "
    "denominadas individualmente como \"la parte\" y conjuntamente como \"las "
    "partes\", reconociéndose capacidad legal suficiente para contratar y "
    "obligarse recíprocamente, y siendo responsable de la veracidad de sus "
    "declaraciones."
)

RECITALS = (
    "1. Que la PARTE ARRENDADORA es propietaria del bien mueble o conjunto de "
    "bienes muebles, en adelante, \"el bien mueble\", que se individualiza en "
    "el (los) Anexo(s) del presente Contrato.",
    "2. Que el(los) bien(es) mueble(s) se encuentra(n) en perfecto estado de "
    "conservación.",
    "3. Que ambas partes conocen y aceptan las características y el estado de "
    "uso y conservación del bien mueble, de acuerdo con lo declarado.",
    "4. Que la PARTE ARRENDATARIA está interesada en el arrendamiento de dicho "
    "bien mueble por los usos y disfrutes, y la PARTE ARRENDADORA consiente "
    "dicha cesión.",
    "5. Y que, habiendo llegado las partes a un entendimiento pleno y perfecto "
    "sobre la materia de sus voluntades, formalizan su acuerdo respecto al "
    "arrendamiento de este(os) bien(s) mueble(s), en adelante, el "
    "\"Contrato\", con el objeto de constituir y regular su acuerdo, el cual "
    "se rige por las siguientes:",
)

# Each inner tuple is one page of clauses (pages 2-5 of the contract).
CLAUSE_PAGES = (
    (
        Clause("PRIMERA: OBJETO DEL CONTRATO", (
            "LA ARRENDADORA entrega en arriendo al ARRENDATARIO, quien acepta, "
            "el (los) bien(es) mueble(s) descrito(s) en el(los) Anexo(s) de "
            "este contrato, con cuanto lo sea inherente y accesorio, el (los) "
            "cual forma(n) parte integrante del mismo.",
            "La PARTE ARRENDATARIA declara que ha revisado suficientemente "
            "dicho(s) bien(es) mueble(s), confirmando que se encuentra(n) en "
            "perfecto estado para el uso que consistirá su destino.",
        )),
        Clause("SEGUNDA: USO O DESTINO", (
            "La PARTE ARRENDATARIA se obliga a darle uso al bien(es) mueble(s), "
            "única y exclusivamente, en actividades relacionadas con la "
            "fotografía y producción audiovisual.",
            "Dicho uso no podrá ser modificado por la PARTE ARRENDATARIA sin el "
            "consentimiento previo, expreso y por escrito de la PARTE "
            "ARRENDADORA.",
            "El incumplimiento de cualquiera de estos requisitos será motivo de "
            "resolución del Contrato.",
        )),
        Clause("TERCERA: DURACIÓN DEL ARRIENDO", (
            "El presente Contrato se entenderá firmado en aquella fecha "
            "correspondiente a la creación de la cuenta de USUARIO en el Sitio "
            "web {platform_url}, sin embargo, comenzará a regir desde la fecha "
            "de la aceptación de presupuesto realizada a través de dicho sitio "
            "web, fecha que constará en el (los) Anexo(s) del presente Contrato.",
            "El ARRENDATARIO deberá crearse una cuenta y un usuario a través del "
            "sitio web {platform_url}, donde se encontrará identificado mediante "
            "su nombre, dirección de correo electrónico y datos necesarios para "
            "el presente Contrato.",
        )),
        Clause("CUARTA: ENTREGA", (
            "La PARTE ARRENDADORA hará entrega del bien(es) mueble(s) objeto de "
            "este Contrato, poniéndolo en poder de la PARTE ARRENDATARIA, en el "
            "horario y fecha estipulada en el Anexo(s) del presente Contrato en "
            "el domicilio señalado por el ARRENDADOR. A partir de esta entrega, "
            "la PARTE ARRENDATARIA se hace cargo de las responsabilidades "
            "derivadas de su tenencia y uso.",
        )),
    ),
    (
        Clause("QUINTA: PRECIO Y FORMA DE PAGO", (
            "El precio del arriendo de los bienes individualizados en (los) "
            "Anexo(s) del presente Contrato será el establecido en el Anexo "
            "correspondiente, el cual deberá ser pagado por EL ARRENDATARIO, en "
            "las condiciones que el correspondiente Anexo determine.",
            "El ARRENDATARIO deberá pagar una reserva por el arriendo de los "
            "bienes, lo cual corresponde al {deposit_pct}% del valor total del "
            "arriendo. El monto restante deberá ser pagado al momento de la "
            "entrega de los bienes.",
            Heading("El monto correspondiente a la reserva deberá ser pagado "
                    "mediante transferencia bancaria a:"),
            BankDetails(),
            "o a través del sistema de pago que se encuentre disponible en el "
            "sitio web {platform_url}",
            "El saldo restante, correspondiente al {balance_pct}% del valor total "
            "del arriendo, deberá ser pagado en su totalidad antes o en el "
            "momento de la devolución por parte de la ARRENDATARIA de los bienes "
            "arrendados.",
        )),
        Clause("SEXTA: ENTREGA Y DEVOLUCIÓN DE LOS EQUIPOS", (
            "1. LA ARRENDADORA entregará los equipos al ARRENDATARIO en el estado "
            "descrito en el(los) Anexo(s), previa revisión conjunta.",
            "2. EL ARRENDATARIO se compromete a devolver los equipos en las "
            "mismas condiciones en que fueron entregados, salvo el desgaste "
            "normal por uso.",
            "3. La entrega y devolución de los equipos se realizará en el "
            "domicilio señalado por el ARRENDADOR, en horario previamente "
            "acordado.",
            "4. Los bienes deben ser entregados limpios y secos. En caso "
            "contrario, LA ARRENDADORA podrá cobrar costos de limpieza "
            "especializada y reparación.",
        )),
        Clause("SÉPTIMA: REPARACIONES Y RESPONSABILIDAD POR DAÑOS", (
            "En el caso de las reparaciones al bien mueble que deban efectuarse "
            "durante la vigencia de este Contrato, serán de cargo de la PARTE "
            "ARRENDATARIA. Dichas reparaciones deberán realizarse en servicios "
            "técnicos autorizados.",
            "Si existe una destrucción total de la cosa, una pérdida total de "
            "utilidad o destrucción de más del 50% de los equipos, LA PARTE "
            "ARRENDATARIA deberá pagar al ARRENDADOR el valor total del equipo.",
            "El ARRENDATARIO deberá efectuar las reparaciones o el reemplazo del "
            "equipo dentro de un plazo máximo de 10 días hábiles.",
        )),
    ),
    (
        Clause("OCTAVA: OBLIGACIONES DE LAS PARTES", (
            Heading("Obligaciones del ARRENDADOR:"),
            "1. Entregar los equipos en condiciones óptimas de uso.",
            "2. Mantener al bien mueble en estado de servir para el fin que ha "
            "sido arrendado.",
            "3. Librar a la PARTE ARRENDATARIA de toda turbación o embarazo en el "
            "goce del bien mueble.",
            Heading("Obligaciones del ARRENDATARIO:"),
            "1. Verificar las condiciones físicas y de funcionamiento de todos "
            "los bienes al momento del retiro.",
            "2. Utilizar los equipos exclusivamente para los fines declarados.",
            "3. Pagar oportunamente las rentas de arriendo.",
            "4. No subarrendar, transferir ni ceder los equipos a terceros.",
            "5. Asumir la responsabilidad por daños físicos y/o de operabilidad.",
            "6. Restituir inmediatamente el bien mueble una vez terminado el "
            "presente Contrato.",
        )),
        Clause("NOVENA: GARANTÍAS Y MULTAS POR RETRASO", (
            "No se exigirá una garantía monetaria debido a que el Contrato "
            "formaliza el compromiso entre las partes. No obstante, EL "
            "ARRENDATARIO responderá por los daños o pérdidas que puedan sufrir "
            "los equipos durante el periodo de arriendo.",
            "En caso de incumplimiento del plazo de devolución, se aplicará una "
            "multa equivalente al valor de un día de arriendo por cada día de "
            "retraso.",
            "EL ARRENDATARIO podrá desistir del arrendamiento notificando con al "
            "menos 48 horas de antelación. En este caso, el monto pagado en "
            "concepto de reserva no será reembolsado.",
        )),
        Clause("DÉCIMA: RESPONSABILIDAD", (
            "A partir del momento en que el ARRENDATARIO retire los bienes, "
            "asumirá plena responsabilidad por la custodia, transporte, uso y "
            "conservación de los mismos.",
            "El ARRENDATARIO será responsable de cualquier daño, pérdida, "
            "deterioro o destrucción que sufran los equipos, incluyendo aquellos "
            "ocurridos durante el transporte.",
        )),
    ),
    (
        Clause("DÉCIMA PRIMERA: MODIFICACIONES AL CONTRATO", (
            "LA ARRENDADORA se reserva el derecho de modificar los términos y "
            "condiciones del presente Contrato cuando ello sea necesario. Toda "
            "modificación será notificada a través de la plataforma "
            "{platform_url}.",
        )),
        Clause("DÉCIMA SEGUNDA: RESOLUCIÓN DEL CONTRATO", (
            "El incumplimiento de las obligaciones legales o contractuales dará "
            "derecho a la otra parte a resolver el Contrato. En caso de "
            "incumplimiento grave, LA ARRENDADORA podrá proceder a la eliminación "
            "de la cuenta de usuario del ARRENDATARIO en la plataforma.",
        )),
        Clause("DÉCIMA TERCERA: TERMINACIÓN ANTICIPADA", (
            "El presente Contrato podrá darse por terminado:",
            "1. Por mutuo acuerdo de las partes.",
            "2. Por incumplimiento de obligaciones.",
            "3. Por devolución anticipada de los equipos.",
        )),
        Clause("DÉCIMA CUARTA: NOTIFICACIONES", (
            "Las notificaciones puedan ser realizadas mediante medios "
            "electrónicos a las siguientes direcciones:",
            Labeled("ARRENDADORA:", "{notices_email}"),
            Labeled("ARRENDATARIO:", "{customer_email}"),
        )),
        Clause("DÉCIMA QUINTA: LEGISLACIÓN APLICABLE", (
            "Para todos los efectos legales derivados del presente Contrato, las "
            "partes fijan domicilio en la ciudad de Santiago, y se someten a la "
            "jurisdicción de sus tribunales de justicia, conforme a la "
            "legislación vigente en la República de Chile.",
        )),
    ),
)

ATTACHMENT_LABELS = (
    ("id_front_url", "Carnet de Identidad (Anverso)"),
    ("id_back_url", "Carnet de Identidad (Reverso)"),
    ("signature_url", "Firma Digital"),
    ("company_registration_url", "E-RUT Empresa"),
)
NO_ATTACHMENTS = "No hay documentos adjuntos al contrato."
TERMS_ACCEPTED = "TÉRMINOS ACEPTADOS"
TERMS_PENDING = "PENDIENTE DE ACEPTACIÓN"

"""
Shared section builders for every rental document.

Each builder is a pure function returning a tuple of layout nodes. The
assemblers in documents.py only choose which sections to stack and in what
order; all conditional visibility (coupon row, delivery row, pickup vs
shipping block, signature slot) is decided here, once.
"""

from ..core.business import BusinessConfig
from .calculations import TotalsCalculator
from .formatting import format_clp
from .layout import (
    BLACK, GREY, LIGHT, WHITE,
    Box, Column, Image, Row, Rule, Spacer, Table, TableRow, Text,
)
from . import legal_text
from .legal_text import BankDetails, Heading, Labeled

SIGNATURE_WIDTH = 100
SIGNATURE_HEIGHT = 50
ATTACHMENT_MAX_HEIGHT = 150
# Longer comments flow full width below the info boxes, which cannot split.
INLINE_COMMENT_LIMIT = 280


def field(label: str, value, size: float = 9) -> tuple:
    """Bold label line followed by its value."""
    return (
        Text(label, size=size, bold=True, space_after=0),
        Text(str(value), size=size, space_after=6),
    )


def _present(value) -> bool:
    return value is not None and value != ""


# ═══════════════════════════════════════════════════════════════════════════════
# HEADER
# ═══════════════════════════════════════════════════════════════════════════════

def header(title: str, config: BusinessConfig, lines=()) -> tuple:
    """Logo on the left; title and the given detail lines right-aligned."""
    right = [Text(title, size=22, bold=True, align="right", space_after=5)]
    for idx, line in enumerate(lines):
        right.append(Text(line, size=11 if idx == 0 else 10, align="right",
                          color=BLACK if idx == 0 else GREY, space_after=3))
    return (
        Row(columns=((Image(config.company.logo_url, width=120, max_height=60),), tuple(right)),
            weights=(1, 1), valign="MIDDLE"),
        Spacer(12),
    )


# ═══════════════════════════════════════════════════════════════════════════════
# CLIENT / PROJECT / ADDITIONAL
# ═══════════════════════════════════════════════════════════════════════════════

def client_column(data) -> tuple:
    billing = data.billing
    nodes = [Text("INFORMACIÓN DEL CLIENTE", size=12, bold=True, space_after=8)]
    nodes += field("Nombre:", billing.full_name)
    nodes += field("Email:", billing.email)
    if billing.tax_id:
        nodes += field("RUT:", billing.tax_id)
    if billing.company_name:
        nodes += field("Empresa:", billing.company_name)
        if data.project.company_tax_id:
            nodes += field("RUT Empresa:", data.project.company_tax_id)
    if billing.phone:
        nodes += field("Teléfono:", billing.phone)
    return tuple(nodes)


def project_column(data) -> tuple:
    project = data.project
    nodes = [Text("INFORMACIÓN DEL PROYECTO", size=12, bold=True, space_after=8)]
    nodes += field("Nombre Proyecto:", project.name)
    nodes += field("N° Jornadas:", project.day_count)
    nodes += field("Fecha Inicio:", project.start_date)
    nodes += field("Fecha Término:", project.end_date)
    return tuple(nodes)


def has_pickup_contact(project) -> bool:
    return bool(project.pickup_contact_name or project.pickup_contact_phone
                or project.pickup_contact_tax_id)


def pickup_block(project) -> tuple:
    nodes = []
    if project.pickup_contact_name:
        nodes += field("Retira:", project.pickup_contact_name)
    if project.pickup_contact_phone:
        nodes += field("Tel. Retiro:", project.pickup_contact_phone)
    if project.pickup_contact_tax_id:
        nodes += field("RUT Retiro:", project.pickup_contact_tax_id)
    return tuple(nodes)


def shipping_block(shipping) -> tuple:
    method = "Retiro en tienda" if shipping.is_pickup else "Envío a domicilio"
    nodes = list(field("Método de Entrega:", method))
    if not shipping.is_pickup:
        if shipping.shipping_address:
            nodes += field("Dirección de Envío:", shipping.shipping_address)
        if shipping.shipping_phone:
            nodes += field("Teléfono de Contacto:", shipping.shipping_phone)
    return tuple(nodes)


def _inline_comments(project) -> bool:
    return len(project.comments) <= INLINE_COMMENT_LIMIT


def additional_column(data) -> tuple:
    """Comments, then exactly one of: pickup block, shipping block, placeholder.

    The pickup block wins whenever a pickup contact exists; shipping details
    are shown only for orders nobody is collecting in person.
    """
    project = data.project
    nodes = [Text("INFORMACIÓN ADICIONAL", size=12, bold=True, space_after=8)]
    if project.comments:
        nodes.append(Text("Comentarios:", bold=True, space_after=0))
        if _inline_comments(project):
            nodes.append(Text(project.comments, size=8, space_after=6))
        else:
            nodes.append(Text(legal_text.COMMENTS_BELOW, size=8, italic=True,
                              color=GREY, space_after=6))

    if has_pickup_contact(project):
        nodes += pickup_block(project)
    elif data.shipping is not None:
        nodes += shipping_block(data.shipping)
    elif not project.comments:
        nodes.append(Text(legal_text.NO_ADDITIONAL_INFO, italic=True, color=GREY))
    return tuple(nodes)


def info_columns(data) -> tuple:
    boxed = tuple(
        (Box(children=column, border=1, fill=LIGHT, padding=10),)
        for column in (client_column(data), project_column(data), additional_column(data))
    )
    nodes = (Row(columns=boxed, weights=(1, 1, 1), gap=10),)
    if data.project.comments and not _inline_comments(data.project):
        nodes += (
            Spacer(10),
            Text("COMENTARIOS", size=10, bold=True, space_after=4),
            Text(data.project.comments, size=8, align="justify", space_after=0),
        )
    return nodes + (Spacer(14),)


# ═══════════════════════════════════════════════════════════════════════════════
# LINE ITEMS + SUMMARY
# ═══════════════════════════════════════════════════════════════════════════════

ITEM_COLUMNS = (
    Column("PRODUCTO", 3),
    Column("VALOR DIARIO", 1.2, "center"),
    Column("CANT.", 0.8, "center"),
    Column("DÍAS", 0.8, "center"),
    Column("NETO", 1, "right"),
    Column("IVA 19%", 1, "right"),
    Column("TOTAL BRUTO", 1.2, "right"),
)


def items_table(data) -> tuple:
    calculator = TotalsCalculator(data.config)
    days = data.project.day_count
    rows = []
    for item in data.line_items:
        breakdown = calculator.row_breakdown(item, days)
        rows.append(TableRow(cells=(
            item.name,
            format_clp(item.unit_price),
            str(item.quantity),
            str(days),
            format_clp(breakdown.net),
            format_clp(breakdown.tax19),
            format_clp(breakdown.gross),
        ), emphasis=True))
    columns = ITEM_COLUMNS
    if data.config.tax_percent != 19:
        columns = tuple(Column(f"IVA {data.config.tax_percent}%", c.weight, c.align)
                        if c.header == "IVA 19%" else c for c in ITEM_COLUMNS)
    return (
        Text("DETALLE DE PRODUCTOS", size=13, bold=True, space_after=10),
        Table(columns=columns, rows=tuple(rows)),
        Spacer(12),
    )


def _summary_line(label: str, value: str, size: float = 11, fill=None,
                  color: str = BLACK, bold_value: bool = False) -> Box:
    return Box(
        children=(Row(columns=(
            (Text(label, size=size, bold=True, color=color, space_after=0),),
            (Text(value, size=size, bold=bold_value, color=color, align="right",
                  space_after=0),),
        ), weights=(1.4, 1), gap=6),),
        border=0.5,
        fill=fill,
        padding=6,
    )


def discount_label(coupon) -> str:
    return f"DESCUENTO CUPÓN ({coupon.code})" if coupon.code else "DESCUENTO"


def summary_lines(data) -> tuple:
    """Summary rows in print order. Discount rows only when a discount applies;
    the delivery row only when the shipping charge is positive."""
    totals = data.totals
    config = data.config
    lines = [_summary_line("SUBTOTAL PRODUCTOS", format_clp(totals.subtotal))]
    if data.coupon is not None and totals.discount > 0:
        lines.append(_summary_line(discount_label(data.coupon),
                                   "-" + format_clp(totals.discount)))
        lines.append(_summary_line("SUBTOTAL CON DESCUENTO",
                                   format_clp(totals.discounted_subtotal)))
    if data.shipping is not None and data.shipping.total > 0:
        lines.append(_summary_line(f"DELIVERY ({data.shipping.method_label})",
                                   format_clp(data.shipping.total)))
    lines.append(_summary_line(f"IVA ({config.tax_percent}%)", format_clp(totals.tax)))
    lines.append(_summary_line("TOTAL", format_clp(totals.total), size=14,
                               fill=BLACK, color=WHITE, bold_value=True))
    lines.append(_summary_line(f"RESERVA {config.deposit_percent}% (Anticipo)",
                               format_clp(totals.deposit), size=12,
                               fill="#333333", color=WHITE, bold_value=True))
    lines.append(_summary_line(f"Saldo Pendiente ({config.balance_percent}%)",
                               format_clp(totals.balance), size=10, fill=LIGHT))
    return tuple(lines)


def summary(data) -> tuple:
    return (
        Row(columns=((Spacer(1),), summary_lines(data)), weights=(0.45, 0.55), gap=0),
        Spacer(14),
    )


# ═══════════════════════════════════════════════════════════════════════════════
# COMPANY / TERMS / NOTICE
# ═══════════════════════════════════════════════════════════════════════════════

def company_block(config: BusinessConfig) -> Box:
    company = config.company
    return Box(children=(
        Image(company.bank_logo_url, width=60, max_height=40),
        Text(company.display_name, size=14, bold=True, space_after=4),
        Text(f"RUT: {company.tax_id}", size=11),
        Text(company.bank_name, size=11),
        Text(company.account_type, size=11),
        Text(company.account_number, size=11),
        Text(f"Email: {company.payments_email}", size=11, space_after=0),
    ), border=1, padding=10)


def terms_block() -> Box:
    return Box(children=(
        Text(legal_text.TERMS_TITLE, size=12, bold=True, color=WHITE,
             align="center", space_after=6),
        Text(legal_text.TERMS_BODY, size=9, color=WHITE, align="justify", space_after=0),
    ), border=1, border_color=WHITE, fill=BLACK, padding=12)


def company_and_terms(config: BusinessConfig) -> tuple:
    return (
        Row(columns=((company_block(config),), (terms_block(),)), weights=(1, 1), gap=12),
        Spacer(12),
    )


def availability_notice() -> tuple:
    return (Box(children=(
        Text(legal_text.NOTICE_TITLE, size=10, bold=True, space_after=5),
        Text(legal_text.NOTICE_BODY, size=9, space_after=0),
    ), border=1, fill="#fff3cd", padding=10),)


# ═══════════════════════════════════════════════════════════════════════════════
# ANNEX + SIGNATURES
# ═══════════════════════════════════════════════════════════════════════════════

def annex(data, annex_text) -> tuple:
    config = data.config
    totals = data.totals
    values = legal_text.legal_values(
        config,
        start=data.project.start_date,
        end=data.project.end_date,
        subtotal=format_clp(totals.discounted_subtotal),
        tax=format_clp(totals.tax),
        deposit=format_clp(totals.deposit),
    )
    fill = legal_text.fill
    nodes = [
        Text(f"ANEXO, Pedido #{data.document_id}", size=10, bold=True, space_after=6),
        Text(fill(annex_text.validity, values), size=8, align="justify", space_after=6),
    ]
    if annex_text.lead:
        nodes.append(Text(annex_text.lead, size=8, bold=True, space_after=3))
    for paragraph in annex_text.logistics:
        nodes.append(Text(fill(paragraph, values), size=8, align="justify", space_after=6))
    nodes.append(Text(fill(annex_text.value, values), size=8, align="justify", space_after=6))
    for clause in annex_text.clauses:
        nodes.append(Text(clause.title + ":", size=8, bold=True, space_after=4))
        for paragraph in clause.paragraphs:
            nodes.append(Text(fill(paragraph, values), size=8, align="justify", space_after=4))
    return tuple(nodes)


def signature_slot(url: str) -> tuple:
    """Signature image, or an empty slot of the same size."""
    if url:
        return (Image(url, width=SIGNATURE_WIDTH, height=SIGNATURE_HEIGHT, align="center"),)
    return (Spacer(SIGNATURE_HEIGHT),)


def lessor_signature(config: BusinessConfig, with_company_tax_id: bool = False) -> tuple:
    nodes = list(signature_slot(config.signatory.signature_url))
    nodes += [
        Rule(thickness=1, space_before=0, space_after=6),
        Text(config.signatory.name, size=8, bold=True, align="center", space_after=1),
        Text(config.signatory.tax_id, size=7, align="center", space_after=1),
        Text("EN REPRESENTACIÓN DE", size=6, align="center", space_after=1),
        Text(config.company.legal_name, size=7, bold=True, align="center", space_after=1),
    ]
    if with_company_tax_id:
        nodes.append(Text(config.company.tax_id, size=7, align="center", space_after=1))
    return tuple(nodes)


def customer_signature(data) -> tuple:
    billing = data.billing
    nodes = list(signature_slot(data.counterparty_signature_url))
    nodes += [
        Rule(thickness=1, space_before=0, space_after=6),
        Text(billing.full_name, size=8, bold=True, align="center", space_after=1),
        Text(billing.tax_id or "Sin RUT", size=7, align="center", space_after=1),
    ]
    if billing.company_name:
        nodes.append(Text("EN REPRESENTACIÓN DE", size=6, align="center", space_after=1))
        nodes.append(Text(billing.company_name, size=7, bold=True, align="center", space_after=1))
    return tuple(nodes)


def dual_signatures(data, with_company_tax_id: bool = False) -> tuple:
    return (
        Spacer(20),
        Row(columns=(lessor_signature(data.config, with_company_tax_id),
                     customer_signature(data)),
            weights=(1, 1), gap=30),
    )


# ═══════════════════════════════════════════════════════════════════════════════
# STANDALONE CONTRACT PIECES
# ═══════════════════════════════════════════════════════════════════════════════

def clause_nodes(clause, values: dict, config: BusinessConfig) -> tuple:
    fill = legal_text.fill
    nodes = [Text(clause.title, size=11, bold=True, space_after=6)]
    for paragraph in clause.paragraphs:
        if isinstance(paragraph, Heading):
            nodes.append(Text(fill(paragraph.text, values), size=9, bold=True, space_after=4))
        elif isinstance(paragraph, Labeled):
            nodes.append(Text(fill(paragraph.value, values), size=9,
                              label=paragraph.label, space_after=2))
        elif isinstance(paragraph, BankDetails):
            nodes.append(company_block(config))
            nodes.append(Spacer(6))
        else:
            nodes.append(Text(fill(paragraph, values), size=9, align="justify", space_after=6))
    nodes.append(Spacer(8))
    return tuple(nodes)


def client_grid(contract) -> tuple:
    first = field("Nombre:", contract.full_name) + field("RUT:", contract.tax_id) \
        + field("Email:", contract.email)
    second = field("Teléfono:", contract.phone) + field("Dirección:", contract.address) \
        + field("Ciudad:", contract.city)
    third = ()
    if contract.is_company:
        third += field("Empresa:", contract.company_name)
        third += field("RUT Empresa:", contract.company_tax_id)
    third += field("Tipo Cliente:", "Empresa" if contract.is_company else "Persona Natural")
    return (
        Box(children=(Row(columns=(first, second, third), weights=(1, 1, 1), gap=15),),
            border=1, fill=LIGHT, padding=15),
        Spacer(15),
    )


def contract_signatures(contract, config: BusinessConfig) -> tuple:
    lessor = [Text("ARRENDADOR", size=9, bold=True, space_after=8)]
    lessor += signature_slot(config.signatory.signature_url)
    lessor += [
        Rule(thickness=1, space_before=0, space_after=8),
        Text(config.signatory.name, size=9, bold=True, align="center", space_after=2),
        Text(f"RUT: {config.signatory.tax_id}", size=8, align="center", space_after=2),
        Text("EN REPRESENTACIÓN DE", size=7, align="center", space_after=2),
        Text(config.company.legal_name, size=8, bold=True, align="center", space_after=2),
        Text(f"RUT: {config.company.tax_id}", size=8, align="center", space_after=2),
    ]

    customer = [Text("ARRENDATARIO", size=9, bold=True, space_after=8)]
    if contract.signature_url:
        customer.append(Image(contract.signature_url, width=SIGNATURE_WIDTH,
                              height=SIGNATURE_HEIGHT, align="center"))
    else:
        customer.append(Text("Firma Pendiente", size=8, color=GREY, align="center",
                             space_after=SIGNATURE_HEIGHT - 10))
    customer += [
        Rule(thickness=1, space_before=0, space_after=8),
        Text(contract.full_name, size=9, bold=True, align="center", space_after=2),
        Text(f"RUT: {contract.tax_id}", size=8, align="center", space_after=2),
    ]
    if contract.is_company and contract.company_name:
        customer += [
            Text("EN REPRESENTACIÓN DE", size=7, align="center", space_after=2),
            Text(contract.company_name, size=8, bold=True, align="center", space_after=2),
            Text(f"RUT: {contract.company_tax_id}", size=8, align="center", space_after=2),
        ]
    return (
        Spacer(10),
        Text("FIRMAS", size=12, bold=True, align="center", space_after=15),
        Row(columns=(tuple(lessor), tuple(customer)), weights=(1, 1), gap=30),
    )


def attachments(contract) -> tuple:
    nodes = [
        Text("DOCUMENTOS ADJUNTOS", size=14, bold=True, space_after=15),
        Text("Documentos incluidos en este contrato:", size=10, space_after=12),
    ]
    for number, (attr, label) in enumerate(legal_text.ATTACHMENT_LABELS, start=1):
        url = getattr(contract, attr)
        if not url:
            continue
        nodes += [
            Text(f"{number}. {label}", size=10, bold=True, space_after=6),
            Image(url, width=250, align="center", max_height=ATTACHMENT_MAX_HEIGHT),
            Text(f"URL: {url}", size=7, color=GREY, space_after=8),
        ]
    if not contract.has_attachments:
        nodes.append(Text(legal_text.NO_ATTACHMENTS, color=GREY, align="center"))
    return tuple(nodes)


def terms_status(contract) -> tuple:
    if contract.terms_accepted:
        label, fill, border, color = legal_text.TERMS_ACCEPTED, "#d4edda", "#c3e6cb", "#155724"
    else:
        label, fill, border, color = legal_text.TERMS_PENDING, "#f8d7da", "#f5c6cb", "#721c24"
    return (
        Spacer(15),
        Text("ESTADO DEL CONTRATO", size=12, bold=True, space_after=10),
        Box(children=(Text(label, size=11, bold=True, align="center", color=color,
                           space_after=0),),
            border=2, border_color=border, fill=fill, padding=12),
    )

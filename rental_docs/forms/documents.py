"""
Layout assemblers for the four rental documents.

    build_quote(data)          → "Presupuesto #id", closes with the availability notice
    build_contract(data)       → "Contrato #id", full annex + both signatures
    build_processing(data)     → "Pedido #id", short annex + both signatures
    build_user_contract(data)  → six-page standalone customer contract

The three order documents share one section sequence; a VariantDescriptor
holds everything that differs between them. Assemblers are pure: the same
data, config and issue date always produce an equal Document.
"""

import logging
from dataclasses import dataclass
from datetime import date
from typing import Optional

from ..core.business import BusinessConfig, DEFAULT_CONFIG
from . import legal_text, sections
from .formatting import today_formatted
from .layout import Document, Page, Text
from .legal_text import AnnexText
from .models import DocumentData, StandaloneContractData

log = logging.getLogger("rental.documents")


@dataclass(frozen=True)
class VariantDescriptor:
    name: str
    title_prefix: str
    show_status: bool
    closing: str                      # "notice" | "annex" | "clauses"
    annex: Optional[AnnexText] = None
    signatures: str = "none"          # "dual" | "none"
    keyed_by: str = "order"           # "order" | "customer"
    lessor_company_tax_id: bool = False
    title_format: str = "{prefix} #{id}"
    footer_format: str = "{prefix} generado con {product} • {website}"

    def title(self, document_id) -> str:
        return self.title_format.format(prefix=self.title_prefix, id=document_id)

    def footer(self, config: BusinessConfig, owner_id=None) -> str:
        return self.footer_format.format(prefix=self.title_prefix, id=owner_id,
                                         product=config.branding.product_name,
                                         website=config.branding.website)


QUOTE = VariantDescriptor(
    name="quote", title_prefix="Presupuesto", show_status=True, closing="notice",
)
CONTRACT = VariantDescriptor(
    name="contract", title_prefix="Contrato", show_status=True, closing="annex",
    annex=legal_text.CONTRACT_ANNEX, signatures="dual",
)
PROCESSING = VariantDescriptor(
    name="processing", title_prefix="Pedido", show_status=False, closing="annex",
    annex=legal_text.PROCESSING_ANNEX, signatures="dual", lessor_company_tax_id=True,
)
USER_CONTRACT = VariantDescriptor(
    name="user_contract", title_prefix="Contrato de Arriendo", show_status=False,
    closing="clauses", signatures="dual", keyed_by="customer",
    title_format="{prefix} N° {id}",
    footer_format="Contrato generado automáticamente • Mario Hans Rental • {website}"
                  " • Usuario ID: {id}",
)


# ═══════════════════════════════════════════════════════════════════════════════
# ORDER DOCUMENTS
# ═══════════════════════════════════════════════════════════════════════════════

def assemble_order_document(data: DocumentData, variant: VariantDescriptor,
                            config: BusinessConfig = None,
                            issued_on: date = None) -> Document:
    if variant.keyed_by != "order":
        raise ValueError(f"variant {variant.name} is not an order document")
    config = config or data.config
    if config is not data.config:
        # Totals must come from the same rates the sections print.
        data = DocumentData(
            document_id=data.document_id, billing=data.billing, project=data.project,
            line_items=data.line_items, status=data.status, coupon=data.coupon,
            shipping=data.shipping,
            counterparty_signature_url=data.counterparty_signature_url, config=config,
        )

    lines = [f"Fecha: {today_formatted(issued_on)}"]
    if variant.show_status:
        lines.append(f"Estado: {data.status}")

    children = (
        sections.header(variant.title(data.document_id), config, lines)
        + sections.info_columns(data)
        + sections.items_table(data)
        + sections.summary(data)
        + sections.company_and_terms(config)
    )
    if variant.closing == "notice":
        children += sections.availability_notice()
    else:
        children += sections.annex(data, variant.annex)
    if variant.signatures == "dual":
        children += sections.dual_signatures(data, variant.lessor_company_tax_id)

    log.debug("Assembled %s for order %s (%d items)", variant.name,
              data.document_id, len(data.line_items))
    return Document(
        title=variant.title(data.document_id),
        pages=(Page(children=children, footer=variant.footer(config)),),
        author=config.company.legal_name,
    )


def build_quote(data: DocumentData, config: BusinessConfig = None,
                issued_on: date = None) -> Document:
    return assemble_order_document(data, QUOTE, config, issued_on)


def build_contract(data: DocumentData, config: BusinessConfig = None,
                   issued_on: date = None) -> Document:
    return assemble_order_document(data, CONTRACT, config, issued_on)


def build_processing(data: DocumentData, config: BusinessConfig = None,
                     issued_on: date = None) -> Document:
    return assemble_order_document(data, PROCESSING, config, issued_on)


# ═══════════════════════════════════════════════════════════════════════════════
# STANDALONE CUSTOMER CONTRACT
# ═══════════════════════════════════════════════════════════════════════════════

def _intro(contract: StandaloneContractData, values: dict) -> str:
    counterparty = ""
    if contract.is_company:
        counterparty = legal_text.fill(legal_text.INTRO_COMPANY, {
            "company_name": contract.company_name,
            "company_rut": contract.company_tax_id,
        })
    counterparty += f"{contract.full_name}, "
    return legal_text.fill(legal_text.INTRO, dict(
        values,
        counterparty=counterparty,
        customer_tax_id=contract.tax_id,
        both="ambos " if contract.is_company else "",
        customer_address=contract.address,
    ))


def build_user_contract(contract: StandaloneContractData, config: BusinessConfig = None,
                        issued_on: date = None,
                        variant: VariantDescriptor = USER_CONTRACT) -> Document:
    """Six pages: cover, four pages of clauses (signatures on the last), attachments."""
    if variant.keyed_by != "customer" or variant.closing != "clauses":
        raise ValueError(f"variant {variant.name} is not a customer contract")
    config = config or DEFAULT_CONFIG
    issued = today_formatted(issued_on)
    values = legal_text.legal_values(config, date=issued, customer_email=contract.email)
    footer = variant.footer(config, contract.user_id)

    cover = (
        sections.header("CONTRATO DE ARRIENDO", config,
                        (f"N° {contract.contract_number}", issued))
        + sections.client_grid(contract)
        + (
            Text(legal_text.CONTRACT_HEADING, size=12, bold=True, space_after=10),
            Text(_intro(contract, values), align="justify", space_after=8),
            Text(legal_text.PARTIES, align="justify", space_after=12),
            Text("EXPONEN", size=12, bold=True, space_after=8),
        )
        + tuple(Text(item, align="justify", space_after=6) for item in legal_text.RECITALS)
    )
    pages = [Page(children=cover, footer=footer)]

    last = len(legal_text.CLAUSE_PAGES) - 1
    for idx, clauses in enumerate(legal_text.CLAUSE_PAGES):
        children = ()
        if idx == 0:
            children += (Text("CLÁUSULAS", size=14, bold=True, space_after=12),)
        for clause in clauses:
            children += sections.clause_nodes(clause, values, config)
        if idx == last and variant.signatures == "dual":
            children += sections.contract_signatures(contract, config)
        pages.append(Page(children=children, footer=footer))

    pages.append(Page(
        children=sections.attachments(contract) + sections.terms_status(contract),
        footer=footer,
    ))
    log.debug("Assembled user contract %s for user %s", contract.contract_number,
              contract.user_id)
    return Document(
        title=variant.title(contract.contract_number),
        pages=tuple(pages),
        author=config.company.legal_name,
    )


BUILDERS = {
    "quote": build_quote,
    "contract": build_contract,
    "processing": build_processing,
    "user_contract": build_user_contract,
}

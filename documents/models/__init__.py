from .delivery import DeliveryNote, DeliveryNoteLine, document_direction
from .purchase import PurchaseInvoice, PurchaseInvoiceLine, PurchaseOrder, PurchaseOrderLine
from .sales import (
    CreditNote,
    CreditNoteLine,
    Estimate,
    EstimateLine,
    Prelevement,
    PrelevementLine,
    SalesInvoice,
    SalesInvoiceLine,
    Statement,
    StatementLine,
)

from __future__ import annotations

from folio_receipts.modules.rules.base import RuleSet, merchant, operation

ES_GROCERIES = (
    merchant(r"\bMERCADONA\b", "Mercadona", "Groceries"),
    merchant(r"\bCARREFOUR\b", "Carrefour", "Groceries"),
    merchant(r"\bALCAMPO\b", "Alcampo", "Groceries"),
    merchant(r"\bDIA\b", "Dia", "Groceries"),
    merchant(r"\bLIDL\b", "Lidl", "Groceries"),
    merchant(r"\bALDI\b", "Aldi", "Groceries"),
    merchant(r"\bEROS?KI\b", "Eroski", "Groceries"),
    merchant(r"\bHIPERCOR\b", "Hipercor", "Groceries"),
    merchant(r"\bCONSUM\b", "Consum", "Groceries"),
    merchant(r"\bBON\s*PREU\b", "Bon Preu", "Groceries"),
)

ES_UTILITIES = (
    merchant(r"\bENDESA\b", "Endesa", "Utilities"),
    merchant(r"\bIBERDROLA\b", "Iberdrola", "Utilities"),
    merchant(r"\bNATURGY\b", "Naturgy", "Utilities"),
    merchant(r"\bVODAFONE\b", "Vodafone", "Utilities"),
    merchant(r"\bMOVISTAR\b", "Movistar", "Utilities"),
    merchant(r"\bORANGE\b", "Orange", "Utilities"),
    merchant(r"\bYOIGO\b", "Yoigo", "Utilities"),
    merchant(r"\bAGUAS?\s*DE\b", "Aguas", "Utilities"),
)

ES_TRANSPORT = (
    merchant(r"\bRENFE\b", "Renfe", "Public Transport"),
    merchant(r"\bMETRO\s*(MADRID|BARCELONA|VALENCIA)?\b", "Metro", "Public Transport"),
    merchant(r"\bTMB\b", "TMB", "Public Transport"),
    merchant(r"\bEMT\b", "EMT", "Public Transport"),
    merchant(r"\b(REPSOL|CEPSA|BP|SHELL|GALP)\b", "Gas Station", "Gas"),
    merchant(r"\bPARKING\b", "Parking", "Parking"),
)

ES_RESTAURANTS = (
    merchant(r"\b(MCDONALDS?|MC\s*DONALD)\b", "McDonald's", "Restaurants"),
    merchant(r"\b(BURGER\s*KING|BK)\b", "Burger King", "Restaurants"),
    merchant(r"\bKFC\b", "KFC", "Restaurants"),
    merchant(r"\bSTARBUCKS\b", "Starbucks", "Restaurants"),
    merchant(r"\bDOMINOS?\b", "Domino's", "Restaurants"),
    merchant(r"\bTELEPIZZA\b", "Telepizza", "Restaurants"),
    merchant(r"\bVIPS\b", "VIPS", "Restaurants"),
    merchant(r"\b100\s*MONTADITOS\b", "100 Montaditos", "Restaurants"),
    merchant(r"\bRODILLA\b", "Rodilla", "Restaurants"),
    merchant(r"\bRESTAURANTE\b", "Restaurant", "Restaurants"),
    merchant(r"\bBAR\b", "Bar", "Restaurants"),
    merchant(r"\bCAFETERIA\b", "Cafeteria", "Restaurants"),
)

ES_SHOPPING = (
    merchant(r"\bEL\s*CORTE\s*INGL[EÉ]S\b", "El Corte Inglés", "Shopping"),
    merchant(r"\bPRIMARK\b", "Primark", "Shopping"),
    merchant(r"\bMEDIA\s*MARKT\b", "MediaMarkt", "Shopping"),
    merchant(r"\bWORTEN\b", "Worten", "Shopping"),
    merchant(r"\bFNAC\b", "Fnac", "Shopping"),
    merchant(r"\bLEROY\s*MERLIN\b", "Leroy Merlin", "Shopping"),
    merchant(r"\bAKI\b", "AKI", "Shopping"),
)

ES_TRANSFERS = (
    merchant(
        r"\b(BIZUM|TRANSFERENCIA)\s+(A|DE|DESDE)?\s*[A-ZÁÉÍÓÚÑ]",
        "Transfer",
        "Transfers",
        extract_name=True,
    ),
)

ES_OPERATIONS = (
    operation(r"\b(TRANSFERENCIA|TRANSF)\b", "Transfer", "Transfers"),
    operation(r"\bBIZUM\b", "Bizum", "Transfers"),
    operation(r"\b(REEMBOLSO|DEVOLUCION)\b", "Refund", "Other"),
    operation(r"\b(COMISION|COMISIONES)\b", "Bank Fee", "Bank Fees"),
    operation(r"\b(CARGO|CARGOS)\b", "Charge", "Other"),
    operation(r"\b(RECIBO|DOMICILIACION)\b", "Direct Debit", "Other"),
    operation(r"\b(NOMINA|SALARIO)\b", "Salary", "Income"),
    operation(r"\b(PENSION|PRESTACION)\b", "Pension", "Income"),
    operation(r"\b(TARJETA|TPV)\b", "Card Payment", "Other"),
    operation(r"\b(CAJERO|RETIRADA)\b", "ATM Withdrawal", "Bank Fees"),
    operation(r"\b(COMPRA|PAGO)\b", "Purchase", "Other"),
)

ES_RULES = RuleSet(
    merchants=ES_GROCERIES
    + ES_UTILITIES
    + ES_TRANSPORT
    + ES_RESTAURANTS
    + ES_SHOPPING
    + ES_TRANSFERS,
    operations=ES_OPERATIONS,
)

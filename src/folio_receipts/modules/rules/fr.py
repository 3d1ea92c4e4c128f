from __future__ import annotations

from folio_receipts.modules.rules.base import RuleSet, merchant, operation

FR_GROCERIES = (
    merchant(r"\bCARREFOUR\b", "Carrefour", "Groceries"),
    merchant(r"\bAUCHAN\b", "Auchan", "Groceries"),
    merchant(r"\bLECLERC\b", "Leclerc", "Groceries"),
    merchant(r"\bINTERMARCH[EÉ]\b", "Intermarché", "Groceries"),
    merchant(r"\bLIDL\b", "Lidl", "Groceries"),
    merchant(r"\bALDI\b", "Aldi", "Groceries"),
    merchant(r"\bMONOPRIX\b", "Monoprix", "Groceries"),
    merchant(r"\bFRANPRIX\b", "Franprix", "Groceries"),
    merchant(r"\bCASTORAMA\b", "Castorama", "Shopping"),
    merchant(r"\bCORA\b", "Cora", "Groceries"),
    merchant(r"\bU\s*EXPRESS\b", "U Express", "Groceries"),
    merchant(r"\bPICARD\b", "Picard", "Groceries"),
    merchant(r"\b(BOULANGERIE|PATISSERIE)\b", "Bakery", "Groceries"),
)

FR_UTILITIES = (
    merchant(r"\bEDF\b", "EDF", "Utilities"),
    merchant(r"\bENGIE\b", "Engie", "Utilities"),
    merchant(r"\bORANGE\b", "Orange", "Utilities"),
    merchant(r"\bSFR\b", "SFR", "Utilities"),
    merchant(r"\bBOUYGUES\b", "Bouygues", "Utilities"),
    merchant(r"\bFREE\b", "Free", "Utilities"),
    merchant(r"\bVEOLIA\b", "Veolia", "Utilities"),
    merchant(r"\bSUEZ\b", "Suez", "Utilities"),
)

FR_TRANSPORT = (
    merchant(r"\bOUI\.?SNCF\b", "Oui.sncf", "Public Transport"),
    merchant(r"\bSNCF\b", "SNCF", "Public Transport"),
    merchant(r"\bRATP\b", "RATP", "Public Transport"),
    merchant(r"\b(METRO|RER|BUS)\b", "Public Transport", "Public Transport"),
    merchant(r"\b(TOTAL|ESSO|BP|SHELL)\b", "Gas Station", "Gas"),
    merchant(r"\bPARKING\b", "Parking", "Parking"),
    merchant(r"\bP[EÉ]AGE\b", "Toll", "Gas"),
    merchant(r"\bVELIB\b", "Velib", "Public Transport"),
)

FR_RESTAURANTS = (
    merchant(r"\b(MCDONALDS?|MC\s*DONALD)\b", "McDonald's", "Restaurants"),
    merchant(r"\b(BURGER\s*KING|BK)\b", "Burger King", "Restaurants"),
    merchant(r"\bKFC\b", "KFC", "Restaurants"),
    merchant(r"\bSTARBUCKS\b", "Starbucks", "Restaurants"),
    merchant(r"\bQUICK\b", "Quick", "Restaurants"),
    merchant(r"\bPAUL\b", "Paul", "Restaurants"),
    merchant(r"\bFLUNCH\b", "Flunch", "Restaurants"),
    merchant(r"\bBRIOCHE\s*DOR[EÉ]E\b", "Brioche Dorée", "Restaurants"),
    merchant(r"\bLE\s*PAIN\s*QUOTIDIEN\b", "Le Pain Quotidien", "Restaurants"),
    merchant(r"\bRESTAURANT\b", "Restaurant", "Restaurants"),
    merchant(r"\bBRASSERIE\b", "Brasserie", "Restaurants"),
    merchant(r"\bCAF[EÉ]\b", "Café", "Restaurants"),
)

FR_SHOPPING = (
    merchant(r"\bFNAC\b", "Fnac", "Shopping"),
    merchant(r"\bDARTY\b", "Darty", "Shopping"),
    merchant(r"\bBOULANGER\b", "Boulanger", "Shopping"),
    merchant(r"\bLEROY\s*MERLIN\b", "Leroy Merlin", "Shopping"),
    merchant(r"\bGALERIES?\s*LAFAYETTE\b", "Galeries Lafayette", "Shopping"),
    merchant(r"\bPRINTEMPS\b", "Printemps", "Shopping"),
    merchant(r"\bSEPHORA\b", "Sephora", "Shopping"),
)

FR_SPECIFIC = (
    merchant(r"\bAPPLE\s*PAY\b", "Apple Pay", "Other"),
    merchant(r"\bGOOGLE\s*PAY\b", "Google Pay", "Other"),
    merchant(r"\bFRAIS\s+DE\s+LIVRAISON\s+DE\s+CARTE\b", "Bank Fee", "Bank Fees"),
    merchant(r"\bFRAIS\s+DE\s+LIVRAISON\b", "Delivery Fee", "Bank Fees"),
    merchant(r"\bAJOUT\s+DE\s+FONDS\b", "Top-up", "Transfers"),
    merchant(r"\bRECHARGE\s+SUR\s+APPLE\s+PAY\b", "Top-up", "Transfers"),
    merchant(r"\bRECHARGE\s+VIA\b", "Top-up", "Transfers"),
    merchant(r"\bBALANCE\s+MIGRATION\b", "Internal Transfer", "Transfers"),
)

FR_TRANSFERS = (
    merchant(
        r"\b(VIREMENT|TRANSF)\s+(A|DE|VERS)?\s*[A-ZÀÂÄÇÈÉÊËÎÏÔÙÛÜ]",
        "Transfer",
        "Transfers",
        extract_name=True,
    ),
)

FR_OPERATIONS = (
    operation(r"\b(VIREMENT|VIR|TRANSF|VIR\s+RECU)\b", "Transfer", "Transfers"),
    operation(r"\b(REMBOURSEMENT|REMBOURS)\b", "Refund", "Other"),
    operation(r"\b(FRAIS|COMMISSION|AGIOS|COTISATION)\b", "Bank Fee", "Bank Fees"),
    operation(r"\b(PRELEVEMENT|PRLV)\b", "Direct Debit", "Other"),
    operation(r"\b(SALAIRE|PAIE)\b", "Salary", "Income"),
    operation(r"\b(RETRAITE|PENSION)\b", "Pension", "Income"),
    operation(r"\b(CARTE|CB)\b", "Card Payment", "Other"),
    operation(r"\b(RETRAIT|DAB|GAB)\b", "ATM Withdrawal", "Bank Fees"),
    operation(r"\b(ACHAT|PAIEMENT)\b", "Purchase", "Other"),
    operation(r"\b(RECHARGE|TOP-UP|AJOUT|VERSEM)\b", "Top-up", "Transfers"),
    operation(r"\b(TPS|TVA|IMPOT|TAXE)\b", "Tax", "Other"),
    operation(r"\bASSURANCE\b", "Insurance", "Bank Fees"),
)

FR_RULES = RuleSet(
    merchants=FR_GROCERIES
    + FR_UTILITIES
    + FR_TRANSPORT
    + FR_RESTAURANTS
    + FR_SHOPPING
    + FR_SPECIFIC
    + FR_TRANSFERS,
    operations=FR_OPERATIONS,
)

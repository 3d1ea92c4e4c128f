from __future__ import annotations

from folio_receipts.modules.rules.base import RuleSet, merchant, operation

EN_GROCERIES = (
    merchant(r"\bTESCO\b", "Tesco", "Groceries"),
    merchant(r"\bSAINSBURY'?S?\b", "Sainsbury's", "Groceries"),
    merchant(r"\bASDA\b", "ASDA", "Groceries"),
    merchant(r"\bMORRISONS?\b", "Morrisons", "Groceries"),
    merchant(r"\bWAITROSE\b", "Waitrose", "Groceries"),
    merchant(r"\bALDI\b", "Aldi", "Groceries"),
    merchant(r"\bLIDL\b", "Lidl", "Groceries"),
    merchant(r"\bICELAND\b", "Iceland", "Groceries"),
    merchant(r"\bCO-?OP\b", "Co-op", "Groceries"),
    merchant(r"(?<!\w)M&S(?!\w)", "Marks & Spencer", "Groceries"),
    merchant(r"\bWALMART\b", "Walmart", "Groceries"),
    merchant(r"\bTARGET\b", "Target", "Groceries"),
    merchant(r"\bWHOLE\s*FOODS\b", "Whole Foods", "Groceries"),
    merchant(r"\bTRADER\s*JOE'?S?\b", "Trader Joe's", "Groceries"),
    merchant(r"\bKROGER\b", "Kroger", "Groceries"),
    merchant(r"\bSAFEWAY\b", "Safeway", "Groceries"),
    merchant(r"\bCOSTCO\b", "Costco", "Groceries"),
)

EN_UTILITIES = (
    merchant(r"\bBRITISH\s*GAS\b", "British Gas", "Utilities"),
    merchant(r"\bE\.?ON\b", "E.ON", "Utilities"),
    merchant(r"\bEDF\s*ENERGY\b", "EDF Energy", "Utilities"),
    merchant(r"\bBULB\b", "Bulb", "Utilities"),
    merchant(r"\bOCTOPUS\s*ENERGY\b", "Octopus Energy", "Utilities"),
    merchant(r"\bVODAFONE\b", "Vodafone", "Utilities"),
    merchant(r"\bO2\b", "O2", "Utilities"),
    merchant(r"\bEE\b", "EE", "Utilities"),
    merchant(r"\bTHREE\b", "Three", "Utilities"),
    merchant(r"\bBT\b", "BT", "Utilities"),
    merchant(r"\bSKY\b", "Sky", "Subscriptions"),
    merchant(r"\bVIRGIN\s*MEDIA\b", "Virgin Media", "Utilities"),
    merchant(r"\bTHAMES\s*WATER\b", "Thames Water", "Utilities"),
)

EN_TRANSPORT = (
    merchant(r"\bTFL\b", "TfL", "Public Transport"),
    merchant(r"\bNATIONAL\s*RAIL\b", "National Rail", "Public Transport"),
    merchant(r"\bOYSTER\b", "Oyster", "Public Transport"),
    merchant(r"\b(SHELL|BP|ESSO|TEXACO)\b", "Gas Station", "Gas"),
    merchant(r"\bPARKING\b", "Parking", "Parking"),
    merchant(r"\bTOLL\b", "Toll", "Gas"),
)

EN_RESTAURANTS = (
    merchant(r"\b(MCDONALDS?|MC\s*DONALD)\b", "McDonald's", "Restaurants"),
    merchant(r"\b(BURGER\s*KING|BK)\b", "Burger King", "Restaurants"),
    merchant(r"\bKFC\b", "KFC", "Restaurants"),
    merchant(r"\bSTARBUCKS\b", "Starbucks", "Restaurants"),
    merchant(r"\bSUBWAY\b", "Subway", "Restaurants"),
    merchant(r"\bPRET\s*A\s*MANGER\b", "Pret", "Restaurants"),
    merchant(r"\bGREGGS\b", "Greggs", "Restaurants"),
    merchant(r"\bNANDO'?S?\b", "Nando's", "Restaurants"),
    merchant(r"\bWAGAMAMA\b", "Wagamama", "Restaurants"),
    merchant(r"\bPIZZA\s*EXPRESS\b", "Pizza Express", "Restaurants"),
    merchant(r"\bCHIPOTLE\b", "Chipotle", "Restaurants"),
    merchant(r"\bPANERA\b", "Panera", "Restaurants"),
)

EN_SHOPPING = (
    merchant(r"\bARGOS\b", "Argos", "Shopping"),
    merchant(r"\bJOHN\s*LEWIS\b", "John Lewis", "Shopping"),
    merchant(r"\bCURRYS\b", "Currys", "Shopping"),
    merchant(r"(?<!\w)B&Q(?!\w)", "B&Q", "Shopping"),
    merchant(r"\bHOMEBASE\b", "Homebase", "Shopping"),
    merchant(r"\bNEXT\b", "Next", "Shopping"),
    merchant(r"\bDEBENHAMS\b", "Debenhams", "Shopping"),
    merchant(r"\bBEST\s*BUY\b", "Best Buy", "Shopping"),
)

EN_TRANSFERS = (
    merchant(
        r"\b(TRANSFER|PAYMENT)\s+(TO|FROM|FOR)?\s*[A-Z]",
        "Transfer",
        "Transfers",
        extract_name=True,
    ),
)

EN_OPERATIONS = (
    operation(r"\b(TRANSFER|BANK\s*TRANSFER)\b", "Transfer", "Transfers"),
    operation(r"\bREFUND\b", "Refund", "Other"),
    operation(r"\b(FEE|CHARGE|COMMISSION)\b", "Bank Fee", "Bank Fees"),
    operation(r"\b(DIRECT\s*DEBIT|DD)\b", "Direct Debit", "Other"),
    operation(r"\b(SALARY|WAGE|PAYROLL)\b", "Salary", "Income"),
    operation(r"\b(PENSION|BENEFIT)\b", "Pension", "Income"),
    operation(r"\b(CARD\s*PAYMENT|DEBIT\s*CARD)\b", "Card Payment", "Other"),
    operation(r"\b(ATM|WITHDRAWAL|CASH\s*WITHDRAWAL)\b", "ATM Withdrawal", "Bank Fees"),
    operation(r"\bPURCHASE\b", "Purchase", "Other"),
    operation(r"\bTOP\s*UP\b", "Top-up", "Other"),
    operation(r"\bSTANDING\s*ORDER\b", "Standing Order", "Transfers"),
)

EN_RULES = RuleSet(
    merchants=EN_GROCERIES
    + EN_UTILITIES
    + EN_TRANSPORT
    + EN_RESTAURANTS
    + EN_SHOPPING
    + EN_TRANSFERS,
    operations=EN_OPERATIONS,
)

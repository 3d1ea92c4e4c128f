from __future__ import annotations

from folio_receipts.modules.rules.base import MerchantRule, OperationRule, merchant, operation

# International brands; consulted after the locale's own table.
COMMON_MERCHANTS: tuple[MerchantRule, ...] = (
    merchant(r"\b(APPLE|ITUNES|APP\s*STORE)\b", "Apple", "Subscriptions"),
    merchant(r"\bGOOGLE\b", "Google", "Subscriptions"),
    merchant(r"\bMICROSOFT\b", "Microsoft", "Subscriptions"),
    merchant(r"\bAMAZON\b", "Amazon", "Shopping"),
    merchant(r"\bSPOTIFY\b", "Spotify", "Subscriptions"),
    merchant(r"\bNETFLIX\b", "Netflix", "Subscriptions"),
    merchant(r"\bDISNEY[\s+]*PLUS\b", "Disney+", "Subscriptions"),
    merchant(r"\bHBO\b", "HBO", "Subscriptions"),
    merchant(r"\bPRIME\s*VIDEO\b", "Prime Video", "Subscriptions"),
    merchant(r"\bYOUTUBE\s*PREMIUM\b", "YouTube Premium", "Subscriptions"),
    merchant(r"\bUBER\s*EATS\b", "Uber Eats", "Food Delivery"),
    merchant(r"\bUBER\b", "Uber", "Taxi/Rideshare"),
    merchant(r"\bBOLT\b", "Bolt", "Taxi/Rideshare"),
    merchant(r"\bCABIFY\b", "Cabify", "Taxi/Rideshare"),
    merchant(r"\bRYANAIR\b", "Ryanair", "Travel"),
    merchant(r"\bVUELING\b", "Vueling", "Travel"),
    merchant(r"\bBOOKING\.?COM\b", "Booking.com", "Travel"),
    merchant(r"\bAIRBNB\b", "Airbnb", "Travel"),
    merchant(r"\bGLOVO\b", "Glovo", "Food Delivery"),
    merchant(r"\bDELIVEROO\b", "Deliveroo", "Food Delivery"),
    merchant(r"\bJUST\s*EAT\b", "Just Eat", "Food Delivery"),
    merchant(r"\bPAYPAL\b", "PayPal", "Other"),
    merchant(r"\bREVOLUT\b", "Revolut", "Bank Fees"),
    merchant(r"\bWISE\b", "Wise", "Bank Fees"),
    merchant(r"\bSTRIPE\b", "Stripe", "Other"),
    merchant(r"\bWHATSAPP\b", "WhatsApp", "Subscriptions"),
    merchant(r"\bTELEGRAM\b", "Telegram", "Subscriptions"),
    merchant(r"\bZOOM\b", "Zoom", "Subscriptions"),
    merchant(r"\bGYM\s*PASS\b", "GymPass", "Health & Fitness"),
    merchant(r"\bPELOTON\b", "Peloton", "Health & Fitness"),
    merchant(r"(?<!\w)H&M(?!\w)", "H&M", "Shopping"),
    merchant(r"\bZARA\b", "Zara", "Shopping"),
    merchant(r"\bIKEA\b", "IKEA", "Shopping"),
    merchant(r"\bDECATHLON\b", "Decathlon", "Sports"),
)

COMMON_OPERATIONS: tuple[OperationRule, ...] = (
    operation(r"\b(ATM|CAJERO|DISTRIBUTEUR|GAB)\b", "ATM Withdrawal", "Bank Fees"),
    operation(r"\b(FEE|COMISION|FRAIS|COMMISSION)\b", "Bank Fee", "Bank Fees"),
)

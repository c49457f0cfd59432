"""Textes d'autorisation de prélèvement ACH (NACHA) affichés au client."""
from payment_portal.config import COMPANY_NAME

ACH_MANDATE_TEXT = (
    f"By providing your bank account information and confirming this payment, you authorize {COMPANY_NAME} "
    "and Stripe, our payment service provider, to debit your bank account for subscription payments in "
    "accordance with their terms. You may cancel this authorization at any time by contacting us or your bank. "
    "This authorization will remain in effect until you cancel it. ACH transactions may take 3-5 business days "
    "to process.\n\n"
    "For healthcare subscription billing, you agree to allow automated charges for your selected subscription "
    "plan. You will receive email notifications before each billing cycle. You may update your payment method "
    "or cancel your subscription at any time through your account dashboard.\n\n"
    "This payment method will be securely stored and used for recurring subscription payments in compliance "
    "with healthcare data protection regulations including HIPAA."
)

# Message du bouton de validation du checkout hébergé
CHECKOUT_SUBMIT_MESSAGE = (
    f"By continuing, you authorize {COMPANY_NAME} to charge your selected payment method for your subscription."
)

SETTLEMENT_NOTICE = (
    "Bank transfers typically take 3-5 business days to settle. "
    "Your subscription is active while the payment clears."
)

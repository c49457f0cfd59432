# module payment_portal.app
from payment_portal.app_setup.factory import create_app

# App globale
app = create_app()

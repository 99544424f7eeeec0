from .health import health_bp
from .payments import payments_bp
from .webhook import webhook_bp
from .pay_pages import pay_pages_bp
from .checks import checks_bp
from .booking import booking_bp
from .settlements import settlements_bp

from .db import db
from .audit_log import AuditLog
from .facility import Facility
from .booking import Booking
from .manual_payment import ManualPayment
from .settlement import DailySettlement, SettlementLineItem
from .reconciliation import ReconciliationItem

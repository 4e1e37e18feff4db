import apps.api.app.models.audit_log
import apps.api.app.models.cycle_lease
import apps.api.app.models.drawdown_alert
import apps.api.app.models.prop_account
import apps.api.app.models.signal
import apps.api.app.models.trade_allocation

from apps.api.app.db.session import Base, engine


def init_db():
    Base.metadata.create_all(bind=engine)

"""
Drawdown monitoring cycle.

One invocation walks every active prop account once:

    equity -> drawdown -> breach -> threshold alerts -> recovery mode
    -> persist (one transaction per account) -> notify (best-effort)

Accounts are independent. A failure on one account is logged and rolled
back and the cycle moves on; the account is picked up again next run.
Notifications go out only after the account's state is committed, and a
delivery failure never touches what was persisted.
"""
import argparse
import json
import logging
import sys
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import asdict, dataclass, field

from apps.api.app.core.config import settings
from apps.api.app.core.logging import configure_logging
from apps.api.app.core.time import today_risk_day, utc_now
from apps.api.app.db.session import SessionLocal
from apps.api.app.services.account_risk import evaluate_account
from apps.api.app.services.audit import log_audit_event
from apps.api.app.services.cycle_lock import CycleInProgressError, cycle_guard, renew_cycle_lease
from apps.api.app.services.drawdown import AccountState
from apps.api.app.services.prop_accounts import (
    ACTIVE,
    alert_types_sent_on,
    apply_evaluation,
    get_account,
    list_active_account_ids,
    list_open_pnls,
    mark_notifications_sent,
)
from apps.worker.app.engine.notifier import Notifier

logger = logging.getLogger("drawdown_monitor")


@dataclass
class CycleSummary:
    processed: int = 0
    alerts_sent: int = 0
    accounts_failed: int = 0
    accounts_at_risk: int = 0
    recovery_mode_activated: int = 0
    recovery_mode_exited: int = 0
    errors: int = 0
    failed_account_ids: list = field(default_factory=list)
    lease_lost: bool = False

    def as_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class AccountOutcome:
    account_id: str
    alerts_recorded: int
    breached: bool
    at_risk: bool
    recovery_transition: str = ""


def _deliver(notifier, notification) -> bool:
    try:
        return bool(notifier.send(notification))
    except Exception:
        logger.exception("Notification dispatch failed for account %s", notification.account_id)
        return False


def process_account(account_id: str, *, session_factory, notifier, now, day):
    """Evaluate and persist one account. Returns None when it is no longer active."""
    db = session_factory()
    try:
        try:
            row = get_account(db, account_id, for_update=True)
            if row is None or row.status != ACTIVE:
                db.rollback()
                return None

            account = AccountState.from_row(row)
            evaluation = evaluate_account(
                account,
                list_open_pnls(db, account_id),
                alert_types_sent_on(db, account_id, day),
                now,
                day,
            )
            records = apply_evaluation(db, row, evaluation, day)
            alert_ids = {r.alert_type: r.id for r in records}
            db.commit()
        except Exception:
            db.rollback()
            raise

        snapshot = evaluation.snapshot
        logger.info(
            "Account %s: Daily DD %.2f%% (%.0f%% of limit), Max DD %.2f%% (%.0f%% of limit), equity %.2f",
            account_id,
            snapshot.daily_dd_pct,
            snapshot.daily_dd_used_pct,
            snapshot.max_dd_pct,
            snapshot.max_dd_used_pct,
            snapshot.current_equity,
        )
        if snapshot.anomalies:
            logger.warning("Account %s: reference data anomalies %s", account_id, ", ".join(snapshot.anomalies))
        if evaluation.breached:
            logger.warning("Account %s FAILED: %s", account_id, evaluation.breach_reason)
        if evaluation.recovery.transition:
            logger.info("Account %s: recovery mode %s", account_id, evaluation.recovery.transition)

        # only alerts that made it into the store are announced
        delivered_ids = []
        for alert in evaluation.alerts:
            if alert.alert_type not in alert_ids:
                continue
            if _deliver(notifier, alert.notification):
                delivered_ids.append(alert_ids[alert.alert_type])
        if evaluation.recovery.notification is not None:
            _deliver(notifier, evaluation.recovery.notification)

        if delivered_ids:
            try:
                mark_notifications_sent(db, delivered_ids)
            except Exception:
                db.rollback()
                logger.exception("Could not flag alerts as notified for account %s", account_id)

        return AccountOutcome(
            account_id=account_id,
            alerts_recorded=len(records),
            breached=evaluation.breached,
            at_risk=evaluation.at_risk and any(r.signals_paused for r in records),
            recovery_transition=evaluation.recovery.transition or "",
        )
    finally:
        db.close()


def _tally(summary: CycleSummary, outcome: AccountOutcome):
    summary.processed += 1
    summary.alerts_sent += outcome.alerts_recorded
    if outcome.breached:
        summary.accounts_failed += 1
        summary.failed_account_ids.append(outcome.account_id)
    if outcome.at_risk:
        summary.accounts_at_risk += 1
    if outcome.recovery_transition == "activated":
        summary.recovery_mode_activated += 1
    elif outcome.recovery_transition == "exited":
        summary.recovery_mode_exited += 1


def _keep_lease(session_factory, holder: str) -> bool:
    db = session_factory()
    try:
        return renew_cycle_lease(db, holder=holder)
    except Exception:
        # a failed renewal is retried after the next account
        db.rollback()
        logger.exception("Could not renew cycle lease %s", holder)
        return True
    finally:
        db.close()


def _record(summary: CycleSummary, account_id: str, result) -> None:
    try:
        outcome = result()
    except Exception:
        summary.errors += 1
        logger.exception("Error processing account %s", account_id)
        return
    if outcome is not None:
        _tally(summary, outcome)


def run_monitoring_cycle(session_factory=SessionLocal, notifier=None, max_workers=None, now=None) -> CycleSummary:
    notifier = notifier or Notifier.from_settings()
    workers = max(1, int(max_workers or settings.MONITOR_MAX_WORKERS))

    with cycle_guard(session_factory) as holder:
        now = now or utc_now()
        day = today_risk_day(now)

        db = session_factory()
        try:
            account_ids = list_active_account_ids(db)
        finally:
            db.close()

        summary = CycleSummary()
        if not account_ids:
            logger.info("No active accounts to monitor")
            return summary

        logger.info("Monitoring %d active accounts (%d workers)", len(account_ids), workers)
        kwargs = {"session_factory": session_factory, "notifier": notifier, "now": now, "day": day}

        # the lease is extended after every account so a long cycle never expires mid-run
        if workers == 1:
            for account_id in account_ids:
                _record(summary, account_id, lambda: process_account(account_id, **kwargs))
                if not _keep_lease(session_factory, holder):
                    summary.lease_lost = True
                    break
        else:
            with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="dd-monitor") as pool:
                futures = {pool.submit(process_account, account_id, **kwargs): account_id for account_id in account_ids}
                for future in as_completed(futures):
                    _record(summary, futures[future], future.result)
                    if not summary.lease_lost and not _keep_lease(session_factory, holder):
                        summary.lease_lost = True
                        for pending in futures:
                            pending.cancel()

        if summary.lease_lost:
            logger.warning("Cycle stopped early: lease taken over after %d accounts", summary.processed + summary.errors)

        db = session_factory()
        try:
            log_audit_event(
                db,
                action="drawdown_monitor.cycle",
                entity_type="drawdown_monitor",
                details=summary.as_dict(),
            )
            db.commit()
        except Exception:
            db.rollback()
            logger.exception("Could not record cycle summary")
        finally:
            db.close()

        logger.info("Monitoring complete: %s", summary.as_dict())
        return summary


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Run one drawdown monitoring cycle")
    parser.add_argument("--workers", type=int, default=None, help="parallel account workers")
    parser.add_argument("--log-level", default="", help="override LOG_LEVEL")
    args = parser.parse_args(argv)

    configure_logging(args.log_level)

    from apps.api.app.db.init_db import init_db

    init_db()
    try:
        summary = run_monitoring_cycle(max_workers=args.workers)
    except CycleInProgressError as exc:
        logger.warning("%s", exc)
        return 2
    print(json.dumps(summary.as_dict()))
    return 0


if __name__ == "__main__":
    sys.exit(main())

"""Every public class and entry point carries a docstring."""

import pytest

from tab_hibernate.backup import BackupManager
from tab_hibernate.client import HibernateClient
from tab_hibernate.counter import DailyCounter
from tab_hibernate.eligibility import url_scheme
from tab_hibernate.history import ClosedSavedHistory
from tab_hibernate.restore import RestoreFlow
from tab_hibernate.router import MessageRouter
from tab_hibernate.scheduler import PeriodicScheduler
from tab_hibernate.service import Hibernator
from tab_hibernate.storage import KeyValueStore, backup_key, suspended_key
from tab_hibernate.suspend import SuspendEngine


@pytest.mark.parametrize("obj", [
    DailyCounter,
    DailyCounter.today,
    SuspendEngine,
    RestoreFlow,
    RestoreFlow.resolve,
    RestoreFlow.clear,
    BackupManager,
    BackupManager.buckets,
    PeriodicScheduler,
    PeriodicScheduler.eligible_count,
    PeriodicScheduler.suspend_one,
    MessageRouter,
    Hibernator,
    Hibernator.stop,
    Hibernator.on_activity,
    Hibernator.backup_now,
    Hibernator.open_saved,
    Hibernator.status,
    HibernateClient,
    HibernateClient.export_history,
    ClosedSavedHistory.entries,
    ClosedSavedHistory.remove,
    KeyValueStore.get,
    suspended_key,
    backup_key,
    url_scheme,
], ids=lambda obj: obj.__qualname__)
def test_has_docstring(obj):
    assert obj.__doc__ and obj.__doc__.strip()

"""Preference routes (the "prefs" collection)."""
from fastapi import APIRouter, Depends
from pydantic import BaseModel

from expenses.api.deps import get_sync_engine
from expenses.db.store import PreferenceStore
from expenses.models.preference import DARK_MODE_KEY
from expenses.sync.engine import ExpenseSyncEngine

router = APIRouter()


class DarkMode(BaseModel):
    enabled: bool


def get_preferences(engine: ExpenseSyncEngine = Depends(get_sync_engine)) -> PreferenceStore:
    return PreferenceStore(engine.store.engine)


@router.get("/dark-mode", response_model=DarkMode)
def get_dark_mode(prefs: PreferenceStore = Depends(get_preferences)):
    return DarkMode(enabled=prefs.get_bool(DARK_MODE_KEY))


@router.put("/dark-mode", response_model=DarkMode)
def set_dark_mode(body: DarkMode, prefs: PreferenceStore = Depends(get_preferences)):
    prefs.set_bool(DARK_MODE_KEY, body.enabled)
    return body

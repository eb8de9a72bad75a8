from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from rsm.config import BackendSettings
from rsm.repositories.sqlite_repo import SqliteRepository
from rsm.repositories.supabase_repo import SupabaseRepository
from rsm.services.inventory_service import InventoryService
from rsm.services.reporting_service import ReportingService
from rsm.services.sales_service import SalesService

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class AppContainer:
    repo: SqliteRepository | SupabaseRepository
    inventory: InventoryService
    sales: SalesService
    reporting: ReportingService

    def close(self) -> None:
        self.repo.close()

    def __enter__(self) -> "AppContainer":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


def build_repository(settings: BackendSettings, default_db_path: Path | str) -> SqliteRepository | SupabaseRepository:
    if settings.backend == "supabase":
        repo = SupabaseRepository(settings.supabase_url or "", settings.supabase_anon_key or "")
        if settings.supabase_email and settings.supabase_password:
            try:
                repo.sign_in(settings.supabase_email, settings.supabase_password)
            except Exception:
                repo.close()
                raise
        log.info("backend_ready backend=supabase url=%s", settings.supabase_url)
        return repo

    repo = SqliteRepository(settings.db_path or default_db_path)
    repo.init_db()
    log.info("backend_ready backend=sqlite db=%s", repo.db_path)
    return repo


def build_container(settings: BackendSettings, default_db_path: Path | str) -> AppContainer:
    repo = build_repository(settings, default_db_path)
    return AppContainer(
        repo=repo,
        inventory=InventoryService(repo),
        sales=SalesService(repo),
        reporting=ReportingService(repo),
    )

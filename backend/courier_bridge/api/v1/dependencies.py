from fastapi import Depends
from courier_bridge.core.config import Settings, settings
from courier_bridge.infrastructure.external.twilio_http import TwilioHTTPClient
from courier_bridge.services.archive_repo import ArchiveRepo
from courier_bridge.services.auth_service import AuthService
from courier_bridge.services.call_initiator import CallInitiator
from courier_bridge.services.calllog_repo import CallLogRepo
from courier_bridge.services.customers_repo import CustomersRepo
from courier_bridge.services.incoming_responder import IncomingCallResponder
from courier_bridge.services.profiles_repo import ProfilesRepo
from courier_bridge.services.reset_service import ResetService
from courier_bridge.services.settings_repo import SettingsRepo
from courier_bridge.services.status_reconciler import StatusReconciler
from courier_bridge.services.supabase import SupabaseClient


def get_settings() -> Settings:
    return settings

def supabase(cfg: Settings = Depends(get_settings)) -> SupabaseClient:
    return SupabaseClient(cfg)

def voice_provider(cfg: Settings = Depends(get_settings)) -> TwilioHTTPClient:
    return TwilioHTTPClient(cfg)

def calllog_repo(db: SupabaseClient = Depends(supabase)) -> CallLogRepo:
    return CallLogRepo(db)

def profiles_repo(db: SupabaseClient = Depends(supabase)) -> ProfilesRepo:
    return ProfilesRepo(db)

def customers_repo(db: SupabaseClient = Depends(supabase)) -> CustomersRepo:
    return CustomersRepo(db)

def settings_repo(db: SupabaseClient = Depends(supabase)) -> SettingsRepo:
    return SettingsRepo(db)

def archive_repo(db: SupabaseClient = Depends(supabase)) -> ArchiveRepo:
    return ArchiveRepo(db)

def auth_service(db: SupabaseClient = Depends(supabase), profiles: ProfilesRepo = Depends(profiles_repo)) -> AuthService:
    return AuthService(db, profiles)

def call_initiator(
    cfg: Settings = Depends(get_settings),
    profiles: ProfilesRepo = Depends(profiles_repo),
    customers: CustomersRepo = Depends(customers_repo),
    calllogs: CallLogRepo = Depends(calllog_repo),
    provider: TwilioHTTPClient = Depends(voice_provider),
) -> CallInitiator:
    return CallInitiator(settings=cfg, profiles=profiles, customers=customers, calllogs=calllogs, provider=provider)

def status_reconciler(calllogs: CallLogRepo = Depends(calllog_repo)) -> StatusReconciler:
    return StatusReconciler(calllogs)

def incoming_responder(
    settings_store: SettingsRepo = Depends(settings_repo),
    calllogs: CallLogRepo = Depends(calllog_repo),
) -> IncomingCallResponder:
    return IncomingCallResponder(settings_store, calllogs)

def reset_service(
    calllogs: CallLogRepo = Depends(calllog_repo),
    archive: ArchiveRepo = Depends(archive_repo),
    customers: CustomersRepo = Depends(customers_repo),
    settings_store: SettingsRepo = Depends(settings_repo),
) -> ResetService:
    return ResetService(calllogs, archive, customers, settings_store)

import tempfile
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
        validate_assignment=True,
    )

    app_env: str = "dev"
    log_level: str = "INFO"
    brand_name: str = "Servicio24"

    whatsapp_verify_token: str
    whatsapp_access_token: str
    whatsapp_phone_number_id: str
    whatsapp_app_secret: str | None = None  # Meta App Secret; unset skips X-Hub-Signature-256 checks (dev only)
    whatsapp_dry_run: bool = True  # log payloads instead of calling the Graph API
    graph_version: str = "23.0"

    # Supabase (durable lead store + supplier directory)
    supabase_url: str | None = None
    supabase_service_role_key: str | None = None  # Service role key (server-only, never exposed)
    supabase_leads_table: str = "leads"
    supabase_suppliers_table: str = "technicians"
    supabase_links_table: str = "lead_tech_links"

    # Redis (sessions + cooldown). Empty = in-memory stores for this process only
    redis_url: str = ""
    redis_key_prefix: str = "s24"

    # Conversation timing
    session_ttl_hours: int = 6
    cooldown_minutes: int = 45
    reset_magic: str = "oga"

    # Optional admin number (with country code, no +) for critical alerts
    admin_phone: str | None = None

    # Outbound delivery: "direct" sends inline, "queued" uses the retrying worker pool
    delivery_mode: str = "direct"
    delivery_max_attempts: int = 3
    delivery_initial_delay_seconds: float = 1.5
    delivery_workers: int = 5

    # Local JSONL backup when the durable lead store is unavailable
    lead_backup_path: str = str(Path(tempfile.gettempdir()) / "s24_leads_backup.jsonl")

    # Rate limiting (webhook endpoint)
    rate_limit_enabled: bool = True
    rate_limit_requests: int = 100  # per client IP per window
    rate_limit_window_seconds: int = 60

    @property
    def session_ttl_seconds(self) -> int:
        return self.session_ttl_hours * 3600

    @property
    def cooldown_seconds(self) -> int:
        return self.cooldown_minutes * 60

    @property
    def supabase_enabled(self) -> bool:
        return bool(self.supabase_url and self.supabase_service_role_key)


# Loaded from the environment / .env at import; missing WhatsApp credentials
# raise ValidationError before the app can start
settings = Settings()

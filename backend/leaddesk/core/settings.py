import os


class Settings:
    def __init__(self):
        self.app_name = "LeadDesk"
        self.api_version = "1.0.0"
        self.environment = os.getenv("LEADDESK_ENVIRONMENT", "development")
        self.secret_key = os.getenv("LEADDESK_SECRET_KEY", "CHANGE_ME")
        self.SECRET_KEY = self.secret_key
        self.access_token_expire_minutes = int(os.getenv("LEADDESK_ACCESS_TOKEN_EXPIRE_MINUTES", "480"))
        self.ACCESS_TOKEN_EXPIRE_MINUTES = self.access_token_expire_minutes
        self.database_url = os.getenv("LEADDESK_DATABASE_URL", "sqlite:///./leaddesk.db")
        self.log_level = os.getenv("LEADDESK_LOG_LEVEL", "INFO").upper()
        self.cors_origins = [
            origin.strip()
            for origin in os.getenv("LEADDESK_CORS_ORIGINS", "http://localhost:5173,http://127.0.0.1:5173").split(",")
            if origin.strip()
        ]
        # Rows per INSERT statement during bulk import
        self.bulk_insert_chunk_size = int(os.getenv("LEADDESK_BULK_INSERT_CHUNK_SIZE", "50"))
        self.email_check_chunk_size = 500


_settings_instance = None


def get_settings():
    """Return a singleton Settings instance."""
    global _settings_instance
    if _settings_instance is None:
        _settings_instance = Settings()
    return _settings_instance

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

load_dotenv()


class Settings(BaseSettings):
    app_title: str = 'Chatbot Admin'
    app_description: str = (
        'Администрирование чат-виджетов клиентов и очередь live-поддержки'
    )
    database_url: str = Field(
        'sqlite+aiosqlite:///./chatbot_admin.db',
        json_schema_extra={'env': 'DATABASE_URL'}
    )
    test_database_url: str = Field(
        'sqlite+aiosqlite:///./test_chatbot_admin.db',
        json_schema_extra={'env': 'TEST_DATABASE_URL'}
    )
    use_test_db: bool = False
    database_echo: bool = False

    jwt_secret: str = 'change-me'
    jwt_algorithm: str = 'HS256'
    jwt_access_token_expire_minutes: int = 60 * 12
    auth_cookie_name: str = 'access_token'
    auth_cookie_secure: bool = False

    public_base_url: str = 'http://localhost:5000'
    cors_origins: list[str] = [
        'http://localhost:5173',
        'http://127.0.0.1:5173',
        'http://localhost:3000',
    ]
    log_file: str = 'chatbot_admin.log'

    model_config = SettingsConfigDict(
        extra="allow",
        env_file=".env",
        env_file_encoding="utf-8",
    )

    def get_database_url(self, test: bool = False) -> str:
        return self.test_database_url if test else self.database_url


settings = Settings()

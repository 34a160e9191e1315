import os
from dotenv import load_dotenv
from pydantic_settings import BaseSettings

# Load environment variables from .env file
load_dotenv()


class Settings(BaseSettings):
    """Application configuration from environment variables"""

    # App
    app_name: str = "HBA WhatsApp Bot"
    debug: bool = os.getenv("DEBUG", "False").lower() == "true"
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    port: int = int(os.getenv("PORT", "3000"))

    # WhatsApp Cloud API
    whatsapp_token: str = os.getenv("WHATSAPP_TOKEN", "")
    phone_number_id: str = os.getenv("PHONE_NUMBER_ID", "")
    verify_token: str = os.getenv("VERIFY_TOKEN", "hba_verify")
    graph_api_base_url: str = os.getenv("GRAPH_API_BASE_URL", "https://graph.facebook.com")
    graph_api_version: str = os.getenv("GRAPH_API_VERSION", "v18.0")
    http_timeout_seconds: float = float(os.getenv("HTTP_TIMEOUT_SECONDS", "30"))

    # Google (service account shared by Sheets and Drive)
    google_service_account_credentials: str = os.getenv("GOOGLE_SERVICE_ACCOUNT_CREDENTIALS", "")
    google_sheet_id: str = os.getenv("GOOGLE_SHEET_ID", "")
    google_sheet_tab: str = os.getenv("GOOGLE_SHEET_TAB", "Bookings")
    google_drive_folder_id: str = os.getenv("GOOGLE_DRIVE_FOLDER_ID", "")
    drive_public_links: bool = os.getenv("DRIVE_PUBLIC_LINKS", "True").lower() == "true"

    # Document reminders
    reminders_enabled: bool = os.getenv("REMINDERS_ENABLED", "True").lower() == "true"
    reminder_check_minutes: int = int(os.getenv("REMINDER_CHECK_MINUTES", "30"))
    reminder_window_hours: int = int(os.getenv("REMINDER_WINDOW_HOURS", "48"))
    reminder_interval_hours: int = int(os.getenv("REMINDER_INTERVAL_HOURS", "24"))

    # Guest-facing messages
    ack_template: str = 'Olá 👋, recebemos a tua mensagem: "{text}". Já estamos a tratar!'
    document_received_text: str = "Recebemos o teu documento ✅ Obrigado!"
    document_failed_text: str = (
        "Não conseguimos processar o teu ficheiro 😕 Podes enviá-lo novamente, por favor?"
    )
    request_documents_template: str = (
        "Olá! A tua reserva {booking_id} está confirmada (check-in: {checkin}). "
        "Para agilizar o check-in, envia-nos por aqui uma foto do documento "
        "de identificação de cada hóspede."
    )
    reminder_template: str = (
        "Lembrete: ainda não recebemos os documentos da reserva {booking_id} "
        "(check-in: {checkin}). Envia-nos uma foto por aqui, por favor 🙏"
    )

    class Config:
        env_file = ".env"
        case_sensitive = False


settings = Settings()

from app.config import ConfigurationError, Settings
from app.providers.base import ClimateEventSink, ClimateStreamProvider
from app.providers.open_meteo import OpenMeteoStreamClient


def get_stream_client(settings: Settings, sink: ClimateEventSink) -> ClimateStreamProvider:
    """
    Provider loader / factory.

    Reads PROVIDER from the settings and returns an instance of the selected
    stream client, wired to push validated events into `sink`.
    This is the single place that knows about concrete providers.
    """
    provider_name = settings.provider.strip().upper()

    if provider_name == "OPEN_METEO":
        return OpenMeteoStreamClient(
            url=settings.open_meteo_url,
            sink=sink,
            reconnect_delay_seconds=settings.reconnect_delay_seconds,
        )

    raise ConfigurationError(f"Unknown PROVIDER='{settings.provider}'. Expected: OPEN_METEO")

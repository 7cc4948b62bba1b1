"""Weather adapter using Open-Meteo API (keyless, free tier)."""

from datetime import date

import httpx

from travelmind.models.companion import DayWeather


async def fetch_daily_weather(
    lat: float,
    lon: float,
    start_date: date,
    end_date: date,
    base_url: str = "https://api.open-meteo.com/v1/forecast",
    client: httpx.AsyncClient | None = None,
) -> list[DayWeather]:
    """Fetch daily weather from Open-Meteo.

    Args:
        lat: Latitude
        lon: Longitude
        start_date: First date to fetch
        end_date: Last date to fetch (inclusive)
        base_url: Open-Meteo API base URL
        client: Optional httpx client (for testing with mocks)

    Returns:
        One DayWeather per day in the range

    Raises:
        httpx.HTTPError: On network or HTTP errors
    """
    # Docs: https://open-meteo.com/en/docs
    params: dict[str, str | float] = {
        "latitude": lat,
        "longitude": lon,
        "start_date": start_date.isoformat(),
        "end_date": end_date.isoformat(),
        "daily": "weathercode,temperature_2m_max,temperature_2m_min,precipitation_sum",
        "timezone": "auto",
    }

    close_client = False
    if client is None:
        client = httpx.AsyncClient(timeout=4.0)
        close_client = True

    try:
        response = await client.get(base_url, params=params)
        response.raise_for_status()
        data = response.json()

        # Response structure: {daily: {time: [...], temperature_2m_max: [...], ...}}
        daily = data["daily"]
        codes = daily.get("weathercode") or []

        weather_days = []
        for i, day in enumerate(daily["time"]):
            weather_days.append(
                DayWeather(
                    date=date.fromisoformat(day),
                    temp_max_c=daily["temperature_2m_max"][i],
                    temp_min_c=daily["temperature_2m_min"][i],
                    precip_mm=daily["precipitation_sum"][i],
                    code=codes[i] if i < len(codes) else None,
                )
            )
        return weather_days
    finally:
        if close_client:
            await client.aclose()

import json

import requests

from jobfit.utils.exceptions import ExternalServiceError


def ollama_generate(prompt: str, model: str, base_url: str, temperature: float = 0.2, timeout: int = 30) -> str:
    url = f"{base_url.rstrip('/')}/api/generate"
    try:
        resp = requests.post(
            url,
            json={
                "model": model,
                "prompt": prompt,
                "options": {"temperature": temperature},
                "stream": False  # single JSON body
            },
            timeout=timeout,
        )
        resp.raise_for_status()
        data = resp.json()
    except requests.HTTPError as e:
        raise ExternalServiceError(
            f"Model server returned an error: {e}",
            service_name="ollama",
            status_code=e.response.status_code if e.response is not None else None,
            cause=e,
        ) from e
    except requests.RequestException as e:
        raise ExternalServiceError(f"Model server request failed: {e}", service_name="ollama", cause=e) from e

    if not isinstance(data, dict):
        raise ExternalServiceError(
            f"Model server returned {type(data).__name__} instead of a JSON object",
            service_name="ollama",
        )
    response = data.get("response")
    return response if isinstance(response, str) else ""


def safe_json(s: str, fallback: dict):
    # models sometimes wrap the JSON in prose
    start = s.find("{")
    end = s.rfind("}")
    if start < 0 or end < start:
        return fallback
    try:
        return json.loads(s[start:end + 1])
    except json.JSONDecodeError:
        return fallback

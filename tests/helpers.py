# tests/helpers.py
import base64
import json
from unittest.mock import MagicMock

import requests


def make_response(status_code=200, json_body=None, text=None):
    """Builds a MagicMock that behaves like a requests.Response."""
    response = MagicMock(spec=requests.Response)
    response.status_code = status_code
    response.text = text if text is not None else json.dumps(json_body)
    if json_body is None:
        response.json.side_effect = ValueError("No JSON object could be decoded")
    else:
        response.json.return_value = json_body
    if status_code >= 400:
        response.raise_for_status.side_effect = requests.exceptions.HTTPError(f"{status_code} Client Error")
    else:
        response.raise_for_status.return_value = None
    return response


def github_file(content: str) -> dict:
    """A GitHub contents API answer for a text file."""
    return {"encoding": "base64", "content": base64.b64encode(content.encode("utf-8")).decode("ascii")}

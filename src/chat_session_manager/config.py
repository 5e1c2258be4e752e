# chat_session_manager/config.py
from __future__ import annotations

import os

from dotenv import load_dotenv

load_dotenv()

# Central defaults: each can be overridden by environment variable
DEFAULT_MODEL = os.getenv("CHAT_SESSION_DEFAULT_MODEL", "gpt-3.5-turbo")
DEFAULT_API_TIMEOUT = float(os.getenv("CHAT_SESSION_API_TIMEOUT", "120"))
DEFAULT_TOKEN_ENCODING = os.getenv("CHAT_SESSION_TOKEN_ENCODING", "cl100k_base")

# Streaming: how long a chunk may wait for the consumer before it is dropped
DEFAULT_FORWARD_TIMEOUT = float(os.getenv("CHAT_SESSION_FORWARD_TIMEOUT", "5"))
DEFAULT_STREAM_BUFFER = int(os.getenv("CHAT_SESSION_STREAM_BUFFER", "64"))

# Credentials for the OpenAI adapter
OPENAI_API_KEY = os.getenv("OPENAI_API_KEY", "")
OPENAI_BASE_URL = os.getenv("OPENAI_BASE_URL", "https://api.openai.com/v1")

import sys
from pathlib import Path
import streamlit as st
import requests
from requests.exceptions import RequestException
from typing import List, Dict, Any, Optional
import threading
import queue
import time

try:
    from core.settings import SETTINGS
except ModuleNotFoundError:
    ROOT = Path(__file__).resolve().parents[1]
    if str(ROOT) not in sys.path:
        sys.path.insert(0, str(ROOT))
    from core.settings import SETTINGS


st.set_page_config(page_title="ShopEase Support", layout="centered")
st.title("ShopEase Support Chat")

API_BASE_URL = SETTINGS.UI.API_BASE_URL
ENDPOINT_CHAT_MESSAGE = SETTINGS.UI.ENDPOINT_CHAT_MESSAGE
ENDPOINT_CHAT_HISTORY = SETTINGS.UI.ENDPOINT_CHAT_HISTORY
REQUEST_TIMEOUT = SETTINGS.UI.UI_REQUEST_TIMEOUT_SECONDS

# Keep chat history and the backend session id
if "messages" not in st.session_state:
    st.session_state.messages = []
if "session_id" not in st.session_state:
    st.session_state.session_id = st.query_params.get("session")


class ChatAPIError(RuntimeError):
    """Backend answered with an error payload."""

    def __init__(self, message: str, session_id: Optional[str] = None):
        super().__init__(message)
        self.session_id = session_id


def _error_from_response(resp: requests.Response, fallback: str) -> ChatAPIError:
    try:
        data = resp.json() or {}
    except ValueError:
        return ChatAPIError(f"{fallback} ({resp.status_code})")
    return ChatAPIError(data.get("error") or fallback, data.get("sessionId"))


def fetch_history(session_id: str) -> List[Dict[str, Any]]:
    """Retrieve the stored messages of a session, oldest first."""
    url = f"{API_BASE_URL}{ENDPOINT_CHAT_HISTORY}/{session_id}"
    try:
        resp = requests.get(url, timeout=60)
    except RequestException as e:
        raise ChatAPIError(f"Failed to reach API at {url}: {e}")
    if resp.status_code != 200:
        raise _error_from_response(resp, "Failed to fetch conversation history")
    return (resp.json() or {}).get("messages", [])


def send_message(message: str, session_id: Optional[str]) -> Dict[str, Any]:
    """Post a message and return ``{reply, sessionId, messageId}``."""
    url = f"{API_BASE_URL}{ENDPOINT_CHAT_MESSAGE}"
    payload: Dict[str, Any] = {"message": message}
    if session_id:
        payload["sessionId"] = session_id
    try:
        resp = requests.post(url, json=payload, timeout=REQUEST_TIMEOUT)
    except RequestException as e:
        raise ChatAPIError(f"Failed to reach API at {url}: {e}", session_id)
    if resp.status_code != 200:
        raise _error_from_response(resp, "Failed to send message")
    return resp.json()


def remember_session(session_id: Optional[str]) -> None:
    if session_id and session_id != st.session_state.session_id:
        st.session_state.session_id = session_id
        st.query_params["session"] = session_id


# Restore a previous session's messages
if st.session_state.session_id and not st.session_state.messages:
    try:
        for m in fetch_history(st.session_state.session_id):
            role = "user" if m.get("sender") == "user" else "assistant"
            st.session_state.messages.append({"role": role, "content": m.get("text", "")})
    except ChatAPIError as e:
        st.warning(f"Could not restore previous conversation: {e}")
        st.session_state.session_id = None
        st.query_params.clear()

# Sidebar settings
with st.sidebar:
    st.subheader("Configuration")
    st.text(f"API_BASE_URL = {API_BASE_URL}")
    st.text(f"Session = {st.session_state.session_id or '(new)'}")
    if st.button("New Chat"):
        st.session_state.messages = []
        st.session_state.session_id = None
        st.query_params.clear()
        st.rerun()
    st.caption(
        "Values are loaded from environment (.env). Override by setting env vars."
    )

# Display chat history
for msg in st.session_state.messages:
    with st.chat_message(msg["role"]):
        st.markdown(msg["content"])


# User input
if prompt := st.chat_input("Ask about shipping, returns, payments..."):
    st.session_state.messages.append({"role": "user", "content": prompt})
    with st.chat_message("user"):
        st.markdown(prompt)

    with st.chat_message("assistant"):
        placeholder = st.empty()
        status_placeholder = st.empty()
        # Local models can take minutes on a cold start; keep the UI alive meanwhile
        result_queue = queue.Queue()
        session_id = st.session_state.session_id

        def backend_task():
            try:
                result_queue.put(send_message(prompt, session_id))
            except ChatAPIError as e:
                result_queue.put(e)

        thread = threading.Thread(target=backend_task, daemon=True)
        thread.start()
        spinner_chars = ["⏳", "⌛", "⏱️", "🕒"]
        idx = 0
        while thread.is_alive():
            status_placeholder.info(
                f"Agent is typing... {spinner_chars[idx % len(spinner_chars)]}"
            )
            time.sleep(0.5)
            idx += 1
        result = result_queue.get()
        status_placeholder.empty()

        if isinstance(result, ChatAPIError):
            remember_session(result.session_id)
            placeholder.error(str(result))
        else:
            remember_session(result.get("sessionId"))
            reply = result.get("reply", "")
            placeholder.markdown(reply)
            st.session_state.messages.append({"role": "assistant", "content": reply})

"""
Streamlit UI components and logic for the Loop hospital network assistant

This module provides:
- Chat interface talking to the /api/query endpoint
- Tracking of whether the assistant has introduced itself
- Handling of conversations the assistant hands over to a human agent
- System status view
"""

import os
import streamlit as st
import requests
from typing import Dict, Optional
from datetime import datetime

# API Configuration
API_BASE_URL = os.getenv("LOOP_API_BASE_URL", "http://localhost:3000/api")


def init_session_state():
    """Initialize Streamlit session state variables."""
    if 'messages' not in st.session_state:
        st.session_state.messages = []

    if 'introduced' not in st.session_state:
        st.session_state.introduced = False

    if 'conversation_ended' not in st.session_state:
        st.session_state.conversation_ended = False


def reset_conversation():
    st.session_state.messages = []
    st.session_state.introduced = False
    st.session_state.conversation_ended = False


def make_api_request(endpoint: str, method: str = "GET", data: Dict = None) -> Optional[Dict]:
    """
    Make API request to the backend.

    Args:
        endpoint: API endpoint
        method: HTTP method
        data: Request data for POST requests

    Returns:
        API response data or None if failed
    """
    try:
        url = f"{API_BASE_URL}{endpoint}"

        if method.upper() == "POST":
            response = requests.post(url, json=data, timeout=30)
        elif method.upper() == "GET":
            response = requests.get(url, timeout=30)
        else:
            st.error(f"Unsupported HTTP method: {method}")
            return None

        if response.status_code == 200:
            return response.json()
        else:
            error = response.json().get("error") if response.headers.get("content-type", "").startswith("application/json") else response.text
            st.error(f"API Error {response.status_code}: {error}")
            return None

    except requests.exceptions.ConnectionError:
        st.error(f"❌ Cannot connect to the API server at {API_BASE_URL}. Please ensure the backend is running.")
        return None
    except requests.exceptions.Timeout:
        st.error("⏱️ Request timed out. Please try again.")
        return None
    except requests.exceptions.RequestException as e:
        st.error(f"Request failed: {str(e)}")
        return None


def send_message(text: str) -> Optional[Dict]:
    """
    Send an utterance to the assistant.

    Args:
        text: User text

    Returns:
        Reply payload ({reply, endConversation}) or None if failed
    """
    request_data = {
        "text": text,
        "introduced": st.session_state.introduced
    }

    return make_api_request("/query", "POST", request_data)


def get_system_status() -> Optional[Dict]:
    """
    Get system status from the API.

    Returns:
        System status data or None if failed
    """
    return make_api_request("/status")


def display_message(role: str, content: str, timestamp: Optional[str] = None):
    """Display a chat message."""
    with st.chat_message(role):
        st.write(content)
        if timestamp:
            st.caption(f"🕒 {timestamp}")


def chat_interface():
    """Main chat interface."""
    st.header("💬 Loop AI")
    st.caption("Find hospitals in a city, or confirm whether a hospital is in your network.")

    if st.button("🔄 New Conversation", help="Start over"):
        reset_conversation()
        st.rerun()

    for message in st.session_state.messages:
        display_message(
            role=message["role"],
            content=message["content"],
            timestamp=message.get("timestamp")
        )

    if st.session_state.conversation_ended:
        st.info("This conversation has been handed over to a human agent. Start a new conversation to continue.")
        return

    if prompt := st.chat_input("e.g. Find hospitals around Bangalore"):
        timestamp = datetime.now().strftime("%H:%M:%S")
        st.session_state.messages.append({"role": "user", "content": prompt, "timestamp": timestamp})
        display_message("user", prompt, timestamp)

        with st.chat_message("assistant"):
            with st.spinner("Thinking..."):
                response = send_message(prompt)

        if response:
            st.session_state.messages.append({
                "role": "assistant",
                "content": response["reply"],
                "timestamp": datetime.now().strftime("%H:%M:%S")
            })
            st.session_state.introduced = True
            st.session_state.conversation_ended = bool(response.get("endConversation"))
            st.rerun()
        else:
            st.error("Failed to get a reply from the assistant. Please try again.")


def system_status_interface():
    """System status and monitoring interface."""
    st.header("📊 System Status")

    if st.button("🔄 Refresh Status"):
        st.rerun()

    status = get_system_status()

    if status:
        status_text = status.get("status", "unknown")
        if status_text == "operational":
            st.success(f"✅ System Status: {status_text.title()}")
        else:
            st.warning(f"⚠️ System Status: {status_text.title()}")

        col1, col2 = st.columns(2)

        with col1:
            st.subheader("🔧 Components")
            if status.get("llm_configured"):
                st.success("✅ Gemini query parser")
            else:
                st.warning("⚠️ Gemini not configured - using rule-based parser")

        with col2:
            st.subheader("📈 Statistics")
            st.metric("Hospitals Loaded", status.get("hospitals_loaded", 0))
            st.metric("Active Calls", status.get("active_call_sessions", 0))

        st.caption(f"Last updated: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}")

    else:
        st.error("❌ Failed to retrieve system status")


def main():
    """Main Streamlit application."""
    st.set_page_config(
        page_title="Loop AI - Hospital Network Assistant",
        page_icon="🏥",
        layout="wide",
        initial_sidebar_state="expanded"
    )

    init_session_state()

    st.sidebar.title("🏥 Loop AI")
    st.sidebar.markdown("---")

    page = st.sidebar.selectbox(
        "Navigate",
        ["💬 Chat", "📊 System Status"],
        index=0
    )

    if page == "💬 Chat":
        chat_interface()
    elif page == "📊 System Status":
        system_status_interface()

    st.sidebar.markdown("---")
    st.sidebar.markdown("""
    ### ℹ️ Try asking
    - Find hospitals around Bangalore
    - Confirm if Apollo Hospital in Chennai is in my network
    """)
    st.sidebar.caption("Powered by FastAPI & Gemini")


if __name__ == "__main__":
    main()

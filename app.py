"""
app.py - minimal entrypoint for Streamlit app

Keep this file tiny so streamlit can import it without side-effects.
Run the app with:
    streamlit run app.py

This module simply delegates to finance_tracker.ui.dashboard.main().

"""
import os
try:
    # If running on Streamlit Cloud, transfer secrets to env vars so the storage layer can read them
    import streamlit as _st
    try:
        _secrets = dict(_st.secrets)
    except FileNotFoundError:
        _secrets = {}
    for _k in ("FINANCE_TRACKER_DATA_FILE", "FINANCE_TRACKER_QUOTA_BYTES"):
        if _secrets.get(_k) and _k not in os.environ:
            os.environ[_k] = str(_secrets[_k])
except ImportError:
    # keep import-time side-effects minimal if streamlit isn't available
    pass

from finance_tracker.ui import dashboard


def main():
    dashboard.main()


if __name__ == "__main__":
    main()

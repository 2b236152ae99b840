import os
from typing import Optional

import pandas as pd
import requests
import streamlit as st

BACKEND_URL = os.getenv("BACKEND_URL", "http://localhost:5000")
ALL_SERVICES = "All services"

COLUMN_LABELS = {
    "id": "ID",
    "customerName": "Customer",
    "customerEmail": "Email",
    "serviceType": "Service",
    "appointmentDate": "Appointment",
    "notes": "Notes",
    "createdAt": "Created",
}


def load_bookings(base_url: str = BACKEND_URL, timeout: float = 10) -> pd.DataFrame:
    """
    Fetches all bookings from the backend, newest first.
    Raises requests.RequestException when the backend can't be reached.
    """
    response = requests.get(f"{base_url.rstrip('/')}/api/bookings", timeout=timeout)
    response.raise_for_status()
    bookings = response.json().get("bookings", [])

    df = pd.DataFrame(bookings, columns=list(COLUMN_LABELS))
    if df.empty:
        return df
    df["createdAt"] = pd.to_datetime(df["createdAt"], utc=True)
    return df.sort_values("id", ascending=False).reset_index(drop=True)


def filter_by_service(df: pd.DataFrame, service: Optional[str]) -> pd.DataFrame:
    if not service or service == ALL_SERVICES or df.empty:
        return df
    return df[df["serviceType"] == service]


def render():
    st.set_page_config(page_title="Garage Manager", page_icon="🔧", layout="centered")
    st.title("Garage Services - Manager Dashboard")

    if st.button("Refresh"):
        st.rerun()

    try:
        df = load_bookings()
    except requests.RequestException as e:
        st.error(f"Could not load bookings from {BACKEND_URL}: {e}")
        return

    if df.empty:
        st.info("No bookings yet.")
        return

    col1, col2 = st.columns(2)
    col1.metric("Total bookings", len(df))
    col2.metric("Service types", df["serviceType"].nunique())

    services = [ALL_SERVICES] + sorted(df["serviceType"].unique().tolist())
    selected = st.selectbox("Service", services)

    st.subheader("Bookings")
    st.dataframe(
        filter_by_service(df, selected),
        use_container_width=True,
        column_config={
            **COLUMN_LABELS,
            "createdAt": st.column_config.DatetimeColumn("Created", format="D.M.YYYY HH:mm"),
        },
    )

    st.markdown("---")
    st.caption("Garage Services • Manager view")


if __name__ == "__main__":
    render()

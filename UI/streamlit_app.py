# UI/streamlit_app.py
# Run: streamlit run UI/streamlit_app.py  (backend: uvicorn leavedesk.main:app)
from datetime import date

import pandas as pd
import streamlit as st

from leavedesk.client import ApiError, LeaveDeskClient
from leavedesk.dashboard import STATUS_FILTERS, departments, filter_requests, summarize, to_rows
from leavedesk.schemas import LEAVE_TYPES

st.set_page_config(page_title="Leave Desk", page_icon="🗓️", layout="wide")


# ----------------------------
# Session state defaults
# ----------------------------
def _init_state():
    st.session_state.setdefault("user_id_input", "")
    st.session_state.setdefault("email_input", "")
    st.session_state.setdefault("profile", None)
    st.session_state.setdefault("rejecting", None)  # request id awaiting a rejection reason


_init_state()


# ----------------------------
# Utilities
# ----------------------------
def api() -> LeaveDeskClient:
    return LeaveDeskClient(
        user_id=st.session_state["user_id_input"] or None,
        email=st.session_state["email_input"] or None,
    )


def call(fn, *args, **kwargs):
    """Run an API call, showing the server message on failure."""
    try:
        return fn(*args, **kwargs)
    except ApiError as e:
        st.toast(f"⚠️ {e.message}", icon="⚠️")
        st.error(e.message)
        return None


def show_stats(requests):
    counts = summarize(requests)
    c1, c2, c3, c4 = st.columns(4)
    c1.metric("Total", counts["total"])
    c2.metric("Pending", counts["pending"])
    c3.metric("Approved", counts["approved"])
    c4.metric("Rejected", counts["rejected"])


def show_table(requests):
    if requests:
        st.dataframe(pd.DataFrame(to_rows(requests)), use_container_width=True, hide_index=True)
    else:
        st.info("No leave requests found.")


# ----------------------------
# UI Header
# ----------------------------
st.title("🗓️ Leave Desk")
st.caption("Submit leave requests. Review them in one place.")

with st.container():
    st.subheader("🪪 Who are you?")
    i1, i2, i3 = st.columns([1.2, 1.2, 1])
    with i1:
        user_id = st.text_input("User ID", value=st.session_state["user_id_input"], placeholder="e.g., emp1")
    with i2:
        email = st.text_input("Email (optional)", value=st.session_state["email_input"])
    with i3:
        if st.button("Load Profile", use_container_width=True):
            st.session_state["user_id_input"] = user_id.strip()
            st.session_state["email_input"] = email.strip()
            st.session_state["profile"] = call(api().profile) if user_id.strip() else None
        if st.button("Load demo data", use_container_width=True):
            if call(api().setup):
                st.toast("✅ Demo data loaded", icon="✅")

profile = st.session_state.get("profile")
if not profile:
    st.warning("Load your profile to continue (demo users: emp1, emp2, hr1).")
    st.stop()

p1, p2, p3 = st.columns(3)
p1.markdown(f"**Name:** {profile['name']}")
p2.markdown(f"**Department:** {profile['department']}")
p3.markdown(f"**Role:** {profile['role']}")
st.markdown("---")


# ----------------------------
# Employee dashboard
# ----------------------------
def employee_dashboard():
    client = api()
    left, right = st.columns([1, 2])

    with left:
        st.subheader("📝 Request Leave")
        with st.form("leave_form", clear_on_submit=True):
            leave_type = st.selectbox("Leave Type", LEAVE_TYPES)
            from_date_val = st.date_input("From Date", value=date.today())
            to_date_val = st.date_input("To Date", value=date.today())
            reason = st.text_area("Reason", placeholder="Short reason for leave")
            submitted = st.form_submit_button("Submit Request", type="primary")
        if submitted:
            if from_date_val > to_date_val:
                st.error("From Date cannot be after To Date.")
            elif not reason.strip():
                st.error("Please give a reason.")
            elif call(client.submit_request, leave_type, from_date_val, to_date_val, reason.strip(), user=profile):
                st.success("Leave request submitted ✅")

    with right:
        st.subheader("📜 My Requests")
        requests = call(client.my_requests) or []
        show_stats(requests)
        status = st.radio("Status", STATUS_FILTERS, horizontal=True)
        show_table(filter_requests(requests, status=status))


# ----------------------------
# HR dashboard
# ----------------------------
def hr_dashboard():
    client = api()
    requests = call(client.all_requests) or []
    show_stats(requests)

    f1, f2 = st.columns(2)
    department = f1.selectbox("Department", ["all"] + departments(requests))
    status = f2.selectbox("Status", STATUS_FILTERS)
    visible = filter_requests(requests, status=status, department=department)
    show_table(visible)

    st.subheader("✅ Pending decisions")
    pending = [r for r in visible if r["status"] == "pending"]
    if not pending:
        st.info("Nothing waiting for review.")
    for r in pending:
        with st.expander(f"{r['employeeName']} · {r['leaveType']} · {r['fromDate']} → {r['toDate']}"):
            st.write(r["reason"])
            a, b = st.columns(2)
            if a.button("Approve", key=f"approve_{r['id']}", type="primary"):
                if call(client.approve, r["id"], profile["name"], expected_status="pending"):
                    st.toast("Request approved", icon="✅")
                    st.rerun()
            if b.button("Reject", key=f"reject_{r['id']}"):
                st.session_state["rejecting"] = r["id"]
            if st.session_state["rejecting"] == r["id"]:
                rejection = st.text_input("Rejection reason", key=f"reason_{r['id']}")
                if st.button("Confirm rejection", key=f"confirm_{r['id']}", disabled=not rejection.strip()):
                    if call(client.reject, r["id"], rejection.strip(), expected_status="pending"):
                        st.session_state["rejecting"] = None
                        st.toast("Request rejected", icon="🛑")
                        st.rerun()


if profile["role"] == "hr":
    hr_dashboard()
else:
    employee_dashboard()

"""
Streamlit user interface for the TrendSpotter application.

The UI talks to the API server through :class:`TrendSpotterClient`.
Four pages are offered from the sidebar:

* **Discover** - listed products filtered by launch window and tag,
  with the top product featured, upvote buttons and a CSV export.
* **Product** - the full record of a single product.
* **Submit** - the product submission form.
* **Admin** - pending submissions with approve and reject actions.

Set ``TRENDSPOTTER_API_URL`` if the API does not run on
``http://localhost:8001``.
"""

from __future__ import annotations

from datetime import date, datetime, time
from typing import Any, Dict, List, Optional, Tuple

import pandas as pd  # type: ignore
import requests
import streamlit as st  # type: ignore
from pydantic import ValidationError

from trendspotter.backend.schemas import AVAILABLE_TAGS, BROWSE_TAGS, MAX_TAGS, ProductSubmissionForm
from trendspotter.frontend.client import ApiError, TrendSpotterClient

TIME_OPTIONS = {
    "day": "Today",
    "week": "This Week",
    "month": "This Month",
    "all": "All Time",
}

PAGES = ["Discover", "Product", "Submit", "Admin"]


@st.cache_resource
def get_client() -> TrendSpotterClient:
    return TrendSpotterClient()


def _reset_session() -> None:
    """Initialise default values in the Streamlit session state."""
    state_defaults = {
        "page": "Discover",
        "time_filter": "all",
        "tag_filter": "all",
        "selected_product_id": None,
    }
    for key, default in state_defaults.items():
        if key not in st.session_state:
            st.session_state[key] = default


def _open_product(product_id: int) -> None:
    st.session_state.selected_product_id = product_id
    st.session_state.page = "Product"


def _reset_filters() -> None:
    st.session_state.time_filter = "all"
    st.session_state.tag_filter = "all"


def _upvote(product_id: int) -> None:
    try:
        if get_client().upvote(product_id) is None:
            st.warning("That product no longer exists.")
    except ApiError as e:
        st.error(f"Failed to upvote: {e.message}")


def show_product_card(product: Dict[str, Any], featured: bool = False, key_prefix: str = "grid") -> None:
    """Render one product with its upvote and details buttons."""
    with st.container(border=True):
        logo_col, body_col, vote_col = st.columns([1, 6, 1])
        with logo_col:
            if product.get("logoUrl"):
                st.image(product["logoUrl"], width=64)
        with body_col:
            title = f"### ⭐ {product['name']}" if featured else f"**{product['name']}**"
            st.markdown(title)
            st.write(product["description"])
            st.caption(" · ".join(product.get("tags") or []))
            if featured and product.get("featuredTweet"):
                st.info(product["featuredTweet"])
            st.button(
                "Details",
                key=f"{key_prefix}-details-{product['id']}",
                on_click=_open_product,
                args=(product["id"],),
            )
        with vote_col:
            st.metric("Upvotes", product["upvotes"])
            st.button(
                "▲",
                key=f"{key_prefix}-upvote-{product['id']}",
                on_click=_upvote,
                args=(product["id"],),
                help="Upvote",
            )


def show_discover_page() -> None:
    """Listing page with time and tag filters."""
    st.header("Discover AI products")
    filter_col, tag_col = st.columns([3, 2])
    with filter_col:
        st.radio(
            "Launched",
            options=list(TIME_OPTIONS),
            format_func=TIME_OPTIONS.get,
            horizontal=True,
            key="time_filter",
        )
    with tag_col:
        st.selectbox(
            "Filter by category",
            options=["all"] + BROWSE_TAGS,
            format_func=lambda tag: "All" if tag == "all" else tag,
            key="tag_filter",
        )
    try:
        products = get_client().list_products(st.session_state.time_filter, st.session_state.tag_filter)
    except ApiError as e:
        st.error(f"Failed to load products: {e.message}")
        return
    except Exception as e:
        st.error(f"API unreachable: {e}")
        return
    if not products:
        st.info("No products match these filters.")
        st.button("Reset filters", on_click=_reset_filters)
        return
    # The top product is featured; the rest form the list
    show_product_card(products[0], featured=True, key_prefix="featured")
    for product in products[1:]:
        show_product_card(product)
    df = pd.DataFrame(products)
    csv_data = df.to_csv(index=False).encode("utf-8")
    st.download_button(
        label="Download listing as CSV",
        data=csv_data,
        file_name="products.csv",
        mime="text/csv",
    )


def _load_product(client: TrendSpotterClient, product_id: int) -> Tuple[Optional[Dict[str, Any]], Optional[str]]:
    """Fetch one product, returning ``(product, None)`` or ``(None, error message)``."""
    try:
        product = client.get_product(product_id)
    except ApiError as e:
        return None, f"Failed to load product: {e.message}"
    except requests.RequestException as e:
        return None, f"API unreachable: {e}"
    if not product:
        return None, "Product not found"
    return product, None


def _review_product(client: TrendSpotterClient, product_id: int, approve: bool) -> Optional[str]:
    """Approve or reject a submission; returns an error message on failure."""
    action = client.approve if approve else client.reject
    try:
        action(product_id)
    except ApiError as e:
        return f"Failed to update product: {e.message}"
    except requests.RequestException as e:
        return f"API unreachable: {e}"
    return None


def show_product_page() -> None:
    """Full details for the selected product."""
    product_id = st.session_state.selected_product_id
    product_id = st.number_input("Product id", min_value=1, step=1, value=product_id or 1)
    product, error = _load_product(get_client(), int(product_id))
    if error:
        st.error(error)
        return
    st.header(product["name"])
    if product.get("logoUrl"):
        st.image(product["logoUrl"], width=96)
    st.write(product["description"])
    st.markdown(f"[Visit website]({product['websiteUrl']})")
    left, right = st.columns(2)
    with left:
        st.write(f"**Maker:** {product['maker']} ({product['makerRole']})")
        st.write(f"**Contact:** {product['makerEmail']}")
        st.write(f"**Pricing:** {product.get('pricing') or 'Free'}")
        if product.get("category"):
            st.write(f"**Category:** {product['category']}")
    with right:
        st.write(f"**Launched:** {product['launchDate'][:10]}")
        st.write(f"**Tags:** {', '.join(product['tags'])}")
        st.metric("Upvotes", product["upvotes"])
        if not product["isApproved"] or product["isPending"]:
            st.warning("This product is not publicly listed.")
    if product.get("featuredTweet"):
        st.info(product["featuredTweet"])
    st.button("▲ Upvote", on_click=_upvote, args=(product["id"],))


def _format_validation_errors(errors: List[Dict[str, Any]]) -> List[str]:
    messages = []
    for err in errors:
        field = ".".join(str(part) for part in err.get("loc", []) if part != "body")
        messages.append(f"{field}: {err.get('msg')}" if field else str(err.get("msg")))
    return messages


def show_submit_page() -> None:
    """Product submission form."""
    st.header("Submit a product")
    st.write("Submissions are reviewed by an admin before they are listed.")
    with st.form("submit-product", clear_on_submit=False):
        name = st.text_input("Product name *")
        description = st.text_area("Description *", height=120)
        website_url = st.text_input("Website URL *")
        logo_url = st.text_input("Logo URL *", value="https://source.unsplash.com/random/200x200/?ai")
        tags = st.multiselect(f"Tags * (select up to {MAX_TAGS})", AVAILABLE_TAGS, max_selections=MAX_TAGS)
        launch_date: date = st.date_input("Launch date", value=date.today())
        maker = st.text_input("Maker name *")
        maker_role = st.text_input("Maker role *")
        maker_email = st.text_input("Maker email *")
        pricing = st.selectbox("Pricing", ["Free", "Freemium", "Paid", "Subscription", "Credit-based"])
        category = st.text_input("Category")
        terms = st.checkbox("I accept the terms and conditions")
        submitted = st.form_submit_button("Submit Product", type="primary")
    if not submitted:
        return
    try:
        form = ProductSubmissionForm(
            name=name,
            description=description,
            website_url=website_url,
            logo_url=logo_url,
            tags=tags,
            launch_date=datetime.combine(launch_date, time.min),
            maker=maker,
            maker_role=maker_role,
            maker_email=maker_email,
            pricing=pricing,
            category=category or None,
            terms=terms,
        )
    except ValidationError as e:
        for message in _format_validation_errors(e.errors()):
            st.error(message)
        return
    try:
        created = get_client().submit_product(form.to_payload())
    except ApiError as e:
        st.error(f"Submission failed: {e.message}")
        for message in _format_validation_errors(e.errors):
            st.error(message)
        return
    st.success(f"Product submitted successfully! {created['name']} has been submitted for review.")


def show_admin_page() -> None:
    """Pending submissions with approve/reject actions."""
    st.header("Admin dashboard")
    client = get_client()
    try:
        pending = client.pending_products()
    except ApiError as e:
        st.error(f"Failed to load pending products: {e.message}")
        return
    except requests.RequestException as e:
        st.error(f"API unreachable: {e}")
        return
    st.write(f"{len(pending)} products awaiting review")
    for product in pending:
        with st.container(border=True):
            st.markdown(f"**{product['name']}** · submitted {product['submissionDate'][:10]}")
            st.write(product["description"])
            st.caption(
                f"{product['maker']} ({product['makerRole']}) · {product['makerEmail']} · "
                f"{', '.join(product['tags'])} · {product['websiteUrl']}"
            )
            approve_col, reject_col, _ = st.columns([1, 1, 6])
            if approve_col.button("Approve", key=f"approve-{product['id']}", type="primary"):
                error = _review_product(client, product["id"], approve=True)
                if error:
                    st.error(error)
                    return
                st.toast(f"{product['name']} approved")
                st.rerun()
            if reject_col.button("Reject", key=f"reject-{product['id']}"):
                error = _review_product(client, product["id"], approve=False)
                if error:
                    st.error(error)
                    return
                st.toast(f"{product['name']} rejected")
                st.rerun()


def show_sidebar_stats() -> None:
    try:
        stats = get_client().stats()
    except Exception as e:
        st.caption(f"API unavailable: {e}")
        return
    st.metric("Listed products", stats["listedProducts"])
    st.metric("Pending review", stats["pendingProducts"])
    if stats["tagDistribution"]:
        tag_df = pd.DataFrame(stats["tagDistribution"]).head(10)
        st.bar_chart(tag_df.set_index("tag")["count"])


def main() -> None:
    """Entry point for the Streamlit application."""
    st.set_page_config(
        page_title="TrendSpotter",
        page_icon="⚡",
        layout="wide",
    )
    _reset_session()
    with st.sidebar:
        st.title("TrendSpotter")
        st.radio("Navigation", PAGES, key="page")
        st.divider()
        show_sidebar_stats()
    if st.session_state.page == "Discover":
        show_discover_page()
    elif st.session_state.page == "Product":
        show_product_page()
    elif st.session_state.page == "Submit":
        show_submit_page()
    elif st.session_state.page == "Admin":
        show_admin_page()


if __name__ == "__main__":
    main()

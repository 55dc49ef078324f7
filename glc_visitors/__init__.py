"""GLC visitors — registration form and admin visitor table (Streamlit)."""

__version__ = "0.1.0"

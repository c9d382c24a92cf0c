from .invoice import prepare_invoice_context, render_invoice_html

__all__ = ["prepare_invoice_context", "render_invoice_html"]

from .order_relay import OrderRelay, compose_order_message, build_whatsapp_link, digits_only

__all__ = ["OrderRelay", "compose_order_message", "build_whatsapp_link", "digits_only"]

# app/services/notification_service.py
import logging
from html import escape

from app.core import telegram_client
from app.core.config import get_settings
from app.schemas.order import OrderNotice

logger = logging.getLogger(__name__)
settings = get_settings()


def _money(value: float) -> str:
    return f"{value:.2f} {settings.CURRENCY}"


class OrderNotifier:
    """
    Posts a "new order" message to the shop's Telegram chat.

    Delivery is best effort: one attempt, failures are logged and dropped.
    """

    def format_order_message(self, notice: OrderNotice) -> str:
        customer = escape(notice.customer) if notice.customer else "Not specified"
        item_count = sum(line.quantity for line in notice.lines)

        parts = [
            f"🛒 <b>New order #{notice.order_id}</b>",
            "",
            f"📅 Date: {notice.created_at.strftime('%d.%m.%Y %H:%M')}",
            f"📦 Items: {item_count}",
            f"💰 Total: <b>{_money(notice.total_amount)}</b>",
            "",
            f"👤 Customer: {customer}",
        ]
        if notice.phone:
            parts.append(f"📞 Phone: {escape(notice.phone)}")
        if notice.delivery_address:
            parts.append(f"📍 Address: {escape(notice.delivery_address)}")
        if notice.notes:
            parts.append(f"📝 Notes: {escape(notice.notes)}")

        parts += ["", "<b>Order items:</b>"]
        for idx, line in enumerate(notice.lines, start=1):
            line_total = line.unit_price * line.quantity
            parts.append(f"{idx}. {escape(line.name)}")
            if line.flavor_name:
                parts.append(f"   Flavor: {escape(line.flavor_name)}")
            parts.append(
                f"   {_money(line.unit_price)} × {line.quantity} = {_money(line_total)}"
            )

        parts += ["", f"💵 <b>Total due: {_money(notice.total_amount)}</b>"]
        return "\n".join(parts)

    def notify_order_created(self, notice: OrderNotice) -> None:
        try:
            sent = telegram_client.send_message(self.format_order_message(notice))
        except Exception:
            logger.exception("Failed to send Telegram notification for order %s", notice.order_id)
            return

        if sent:
            logger.info("Telegram notification sent for order %s", notice.order_id)
        else:
            logger.info("Telegram is not configured; skipped notification for order %s", notice.order_id)

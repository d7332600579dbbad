# app/services/notification_service.py
import logging
import socket
from concurrent.futures import Future, ThreadPoolExecutor

from app.core import email_client, whatsapp_client
from app.core.config import get_settings
from app.core.storage_utils import upload_label
from app.core.supabase_client import is_admin_configured
from app.schemas.order import OrderWithLinesRead

logger = logging.getLogger(__name__)
settings = get_settings()


def _pickup_text(order: OrderWithLinesRead) -> str:
    if order.delivery_time.lower() == settings.IMMEDIATE_PICKUP.lower():
        return f"{order.delivery_date} (immediate pickup)"
    return f"{order.delivery_date} {order.delivery_time}"


def _line_text(line) -> str:
    size = f" [{line.size}]" if line.size else ""
    if line.unit == "units":
        qty = f"{int(line.quantity)} units (~{line.weight_kg:g} kg)"
    else:
        qty = f"{line.quantity:g} kg"
    return f"{line.good_name}{size} - {line.cut_name}: {qty} = {line.line_total:.2f}"


def order_summary_text(order: OrderWithLinesRead) -> str:
    rows = [
        f"Order #{str(order.id)[:8]}",
        f"Name: {order.customer_name}",
        f"Phone: {order.phone}",
        f"Pickup: {_pickup_text(order)}",
        "",
    ]
    rows += [_line_text(line) for line in order.lines]
    rows += [f"{ex.name}: {ex.quantity} {ex.unit} = {ex.line_total:.2f}" for ex in order.extras]
    rows.append("")
    rows.append(f"Subtotal: {order.subtotal:.2f}")
    if order.discount_amount:
        rows.append(f"Discount ({order.coupon_code}): -{order.discount_amount:.2f}")
    rows.append(f"Total (estimated, final price after weighing): {order.total_price:.2f}")
    if order.note:
        rows.append(f"Note: {order.note}")
    return "\n".join(rows)


def render_label(order: OrderWithLinesRead) -> str:
    """
    Narrow plain-text label for the counter printer.
    """
    rows = [
        "=" * 32,
        f"ORDER {str(order.id)[:8].upper()}",
        order.customer_name,
        order.phone,
        _pickup_text(order),
        "-" * 32,
    ]
    rows += [_line_text(line) for line in order.lines]
    rows += [f"+ {ex.name} x{ex.quantity}" for ex in order.extras]
    if order.stock_shortfall:
        rows.append("!! CHECK STOCK !!")
    rows.append("=" * 32)
    return "\n".join(rows) + "\n"


def send_to_printer(content: str) -> None:
    """
    Push raw text to a network label printer (port 9100 style).
    """
    with socket.create_connection((settings.PRINTER_HOST, settings.PRINTER_PORT), timeout=10) as conn:
        # ESC @ resets the printer; GS V 0 cuts the paper
        conn.sendall(b"\x1b@" + content.encode("utf-8") + b"\n\n\n\x1dV\x00")


class OrderNotifier:
    """
    Post-commit, fire-and-forget delivery of order notifications.

    Channels:
      - customer + store emails
      - WhatsApp to the customer and the store phone
      - order label (network printer, else Supabase Storage)

    Each channel runs in its own try block; nothing raised here can reach
    the caller that committed the order.
    """

    def __init__(self, executor: ThreadPoolExecutor | None = None):
        self.executor = executor or ThreadPoolExecutor(
            max_workers=settings.NOTIFY_WORKERS,
            thread_name_prefix="notify",
        )

    def enqueue(self, order: OrderWithLinesRead) -> Future | None:
        try:
            return self.executor.submit(self.deliver, order)
        except RuntimeError:
            # Executor already shut down (application stopping)
            logger.exception("Could not queue notifications for order %s", order.id)
            return None

    def deliver(self, order: OrderWithLinesRead) -> None:
        self._run("email", self.send_emails, order)
        self._run("whatsapp", self.send_whatsapp, order)
        self._run("label", self.print_label, order)

    def shutdown(self) -> None:
        self.executor.shutdown(wait=True)

    def _run(self, channel: str, func, order: OrderWithLinesRead) -> None:
        try:
            func(order)
        except Exception:
            logger.exception("❌ %s notification failed for order %s", channel, order.id)

    # ----- Channels -----

    def send_emails(self, order: OrderWithLinesRead) -> None:
        if not email_client.is_configured():
            logger.info("SMTP not configured, skipping emails for order %s", order.id)
            return

        summary = order_summary_text(order)
        email_client.send_email(
            to_email=order.email,
            subject=f"Your order for {_pickup_text(order)} is confirmed",
            text_body=f"Hi {order.customer_name},\n\nThanks for your order!\n\n{summary}",
        )
        if settings.STORE_ADMIN_EMAIL:
            email_client.send_email(
                to_email=settings.STORE_ADMIN_EMAIL,
                subject=f"New order: {order.customer_name} ({_pickup_text(order)})",
                text_body=summary,
            )
        logger.info("✅ Emails sent for order %s", order.id)

    def send_whatsapp(self, order: OrderWithLinesRead) -> None:
        if not whatsapp_client.is_configured():
            logger.info("GreenAPI not configured, skipping WhatsApp for order %s", order.id)
            return

        summary = order_summary_text(order)
        whatsapp_client.send_message(order.phone, f"Thanks {order.customer_name}!\n\n{summary}")
        if settings.STORE_ADMIN_PHONE:
            whatsapp_client.send_message(settings.STORE_ADMIN_PHONE, f"New order\n\n{summary}")
        logger.info("✅ WhatsApp sent for order %s", order.id)

    def print_label(self, order: OrderWithLinesRead) -> None:
        label = render_label(order)

        if settings.PRINTER_HOST:
            try:
                send_to_printer(label)
                logger.info("🖨️ Label printed for order %s", order.id)
                return
            except OSError:
                logger.exception("Printer %s unreachable, falling back to storage", settings.PRINTER_HOST)

        if not is_admin_configured():
            logger.info("No printer or storage configured, label for order %s not produced", order.id)
            return

        url = upload_label(order.id, label)
        logger.info("Label for order %s stored at %s", order.id, url)

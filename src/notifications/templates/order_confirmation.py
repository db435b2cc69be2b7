"""Order confirmation template — sent when an order is paid."""


class OrderConfirmationTemplate:
    @staticmethod
    def render(context: dict) -> dict:
        order_id = context.get("order_id", "N/A")
        amount = context.get("amount", 0.0)
        currency = str(context.get("currency", "usd")).upper()
        item_count = context.get("item_count", 0)
        return {
            "subject": f"Order #{order_id} Confirmed",
            "body": (
                f"Thank you! Payment for order #{order_id} was received.\n\n"
                f"Items: {item_count}\n"
                f"Order Total: {currency} {amount:.2f}\n\n"
                "We'll let you know as soon as it ships."
            ),
        }

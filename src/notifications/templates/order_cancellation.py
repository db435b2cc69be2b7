"""Order cancellation template — sent when an order is cancelled before payment."""


class OrderCancellationTemplate:
    @staticmethod
    def render(context: dict) -> dict:
        order_id = context.get("order_id", "N/A")
        return {
            "subject": f"Order #{order_id} Cancelled",
            "body": (
                f"Your order #{order_id} has been cancelled and you have not been charged.\n\n"
                "If this was a mistake you can place the order again at any time."
            ),
        }

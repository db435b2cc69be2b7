"""Payment failure template."""


class PaymentFailedTemplate:
    @staticmethod
    def render(context: dict) -> dict:
        order_id = context.get("order_id", "N/A")
        amount = context.get("amount", 0.0)
        currency = str(context.get("currency", "usd")).upper()
        return {
            "subject": f"Payment for Order #{order_id} Failed",
            "body": (
                f"We couldn't collect {currency} {amount:.2f} for order #{order_id}.\n\n"
                "No items were reserved. Please place a new order with another payment method."
            ),
        }

from html import escape

_PAGE = """<!DOCTYPE html>
<html>
  <head>
    <title>{title}</title>
    <style>
      body {{ font-family: Arial, sans-serif; text-align: center; padding: 50px; background-color: #f0f0f0; }}
      .container {{ background: white; padding: 30px; border-radius: 10px; max-width: 600px; margin: 0 auto; }}
      h1 {{ color: {color}; }}
      p {{ color: #666; }}
    </style>
  </head>
  <body>
    <div class="container">
      <h1>{title}</h1>
      {content}
    </div>
  </body>
</html>
"""


def success_page(order_id: str | None, amount: str | None) -> str:
    content = (
        "<p>Your payment has been processed successfully.</p>"
        f"<p>Order ID: {escape(order_id or 'N/A')}<br>"
        f"Amount: {escape(amount or 'N/A')} ILS</p>"
        "<p>You can close this window now.</p>"
    )
    return _PAGE.format(title="Payment Successful!", color="#4CAF50", content=content)


def cancel_page() -> str:
    content = (
        "<p>Your payment was cancelled or not completed.</p>"
        "<p>You can close this window and try again.</p>"
    )
    return _PAGE.format(title="Payment Cancelled", color="#f44336", content=content)

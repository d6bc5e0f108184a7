"""HTML bodies for account emails. Only the variable parts are escaped; markup is static."""

from html import escape

_STYLE = """
    body { font-family: Inter, Arial, sans-serif; background-color: #f2f2f2; padding: 20px; }
    .container { background-color: #ffffff; border-radius: 10px; padding: 20px; text-align: center; }
    h2 { color: #333333; }
    p { color: #666666; }
    .btn { background-color: #007bff; color: #ffffff; padding: 10px 20px; text-decoration: none; border-radius: 5px; }
"""


def _page(heading: str, body_html: str, signature: str) -> str:
    return f"""<!DOCTYPE html>
<html>
<head>
<meta charset="utf-8">
<style>{_STYLE}</style>
</head>
<body>
<div class="container">
<h2>{heading}</h2>
{body_html}
<p>Regards,<br>{escape(signature)}</p>
</div>
</body>
</html>
"""


def _button(link: str, label: str) -> str:
    return f'<p><a class="btn" href="{escape(link, quote=True)}">{escape(label)}</a></p>'


def account_confirmation_email(user_name: str, link: str, project_name: str) -> str:
    return _page(
        f"Hello {escape(user_name)},",
        "<p>Please click the button below to confirm your account:</p>"
        + _button(link, "Confirm account"),
        project_name,
    )


def password_reset_email(user_name: str, link: str, project_name: str) -> str:
    return _page(
        f"Hello {escape(user_name)},",
        "<p>We received a request to reset your password. "
        "Click the button below to reset your password:</p>"
        + _button(link, "Reset password")
        + "<p>If you didn't request this, you can safely ignore this email.</p>",
        project_name,
    )


def email_change_confirmation_email(user_name: str, link: str, project_name: str) -> str:
    return _page(
        f"Hello {escape(user_name)},",
        f"<p>We received a request to add this email to a {escape(project_name)} account. "
        "Click the button below to confirm your email address:</p>"
        + _button(link, "Confirm email")
        + "<p>If you didn't request this, you can safely ignore this email.</p>",
        project_name,
    )


def new_login_email(username: str, login_time: str, device: str, project_name: str) -> str:
    return _page(
        f"Hello {escape(username)},",
        "<p>We noticed a new login to your account.</p>"
        f"<p>Time: {escape(login_time)}<br>Device: {escape(device)}</p>"
        "<p>If this was not you, please reset your password right away.</p>",
        project_name,
    )


def password_changed_email(username: str, project_name: str) -> str:
    return _page(
        f"Hello {escape(username)},",
        "<p>The password for your account was just changed.</p>"
        "<p>If you did not make this change, please reset your password right away.</p>",
        project_name,
    )


def email_changed_email(user_name: str, new_email: str, project_name: str) -> str:
    return _page(
        f"Hello {escape(user_name)},",
        "<p>The email address on your account was changed to "
        f"{escape(new_email)}. This address will no longer receive account emails.</p>"
        "<p>If you did not make this change, please contact support right away.</p>",
        project_name,
    )

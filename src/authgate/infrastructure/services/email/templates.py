"""Built-in email templates.

Each template is a (subject, html, text) triple rendered with Jinja2.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class EmailTemplate:
    subject: str
    html_body: str
    text_body: str


SIGNIN_CODE = EmailTemplate(
    subject="Your {{ app_name }} sign-in code",
    html_body="""\
<p>Hello,</p>
<p>Your sign-in code is <strong>{{ code }}</strong>.</p>
<p>Or sign in with one click: <a href="{{ magic_link }}">{{ magic_link }}</a></p>
<p>This code expires in {{ expires_in_minutes }} minutes. If you did not try to sign in, you can ignore this email.</p>
""",
    text_body="""\
Hello,

Your sign-in code is {{ code }}.

Or sign in with this link:
{{ magic_link }}

This code expires in {{ expires_in_minutes }} minutes. If you did not try to sign in, you can ignore this email.
""",
)

EMAIL_CHANGE_OLD = EmailTemplate(
    subject="Confirm your email change request",
    html_body="""\
<p>Hi {{ display_name }},</p>
<p>Someone asked to change the email on your {{ app_name }} account from
<strong>{{ current_email }}</strong> to <strong>{{ new_email }}</strong>.</p>
<p>Your confirmation code is <strong>{{ code }}</strong>, or confirm here:
<a href="{{ magic_link }}">{{ magic_link }}</a></p>
<p>The code expires in {{ expires_in_minutes }} minutes. If this wasn't you, cancel the request from your profile.</p>
""",
    text_body="""\
Hi {{ display_name }},

Someone asked to change the email on your {{ app_name }} account from {{ current_email }} to {{ new_email }}.

Your confirmation code is {{ code }}, or confirm here:
{{ magic_link }}

The code expires in {{ expires_in_minutes }} minutes. If this wasn't you, cancel the request from your profile.
""",
)

EMAIL_CHANGE_NEW = EmailTemplate(
    subject="Verify your new {{ app_name }} email",
    html_body="""\
<p>Hi {{ display_name }},</p>
<p>Use the code <strong>{{ code }}</strong> to verify <strong>{{ new_email }}</strong> as your new
{{ app_name }} email address, or verify here: <a href="{{ magic_link }}">{{ magic_link }}</a></p>
<p>The code expires in {{ expires_in_minutes }} minutes.</p>
""",
    text_body="""\
Hi {{ display_name }},

Use the code {{ code }} to verify {{ new_email }} as your new {{ app_name }} email address, or verify here:
{{ magic_link }}

The code expires in {{ expires_in_minutes }} minutes.
""",
)

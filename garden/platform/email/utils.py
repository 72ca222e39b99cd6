import datetime

from jinja2 import Environment, PackageLoader, select_autoescape

from garden import settings

_environment = Environment(
    loader=PackageLoader('garden.platform.email', 'templates'),
    autoescape=select_autoescape(['html', 'xml']),
)


def render_template(template_name: str, context: dict) -> str:
    template = _environment.get_template(template_name)

    # Add company information to all email templates
    return template.render(
        **context,
        copyright_year=datetime.date.today().year,
        company_name=settings.COMPANY_NAME,
        support_email=settings.SUPPORT_EMAIL,
        company_website=settings.COMPANY_WEBSITE,
    )

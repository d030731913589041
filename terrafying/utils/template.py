import os

import jinja2

from terrafying import templates


def get_package_environment() -> jinja2.Environment:
    """Loads templates from the current Python package"""
    templates_dir = os.path.dirname(templates.__file__)
    template_loader = jinja2.FileSystemLoader(searchpath=templates_dir)
    return jinja2.Environment(
        loader=template_loader,
        keep_trailing_newline=True,
        undefined=jinja2.StrictUndefined,
    )


def render(template_name: str, **variables: object) -> str:
    return get_package_environment().get_template(template_name).render(**variables)

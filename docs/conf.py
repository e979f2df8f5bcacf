# Sphinx configuration file

import os
import sys
sys.path.insert(0, os.path.abspath('../src'))

from bpmn_engine import __version__  # noqa: E402

project = 'bpmn-engine'
copyright = '2024, bpmn-engine contributors'
author = 'bpmn-engine contributors'
release = __version__
version = '.'.join(__version__.split('.')[:2])

extensions = [
    'sphinx.ext.autodoc',
    'sphinx.ext.napoleon',
    'sphinx.ext.viewcode',
    'sphinx.ext.intersphinx',
    'sphinx_autodoc_typehints',
]

root_doc = 'index'
templates_path = ['_templates']
exclude_patterns = ['_build', 'Thumbs.db', '.DS_Store']

html_theme = 'sphinx_rtd_theme'
html_title = f'bpmn-engine {release}'

# Gateway kinds are written by overriding these hooks.
autodoc_default_options = {
    'members': True,
    'member-order': 'bysource',
    'private-members': '_on_inbound, _select_outbound, _outbound_interrupted',
    'show-inheritance': True,
    'exclude-members': '__weakref__, model_config, model_fields, model_computed_fields',
}
add_module_names = False
typehints_fully_qualified = False
always_document_param_types = False

napoleon_google_docstring = True
napoleon_numpy_docstring = False

intersphinx_mapping = {
    'python': ('https://docs.python.org/3', None),
    'pydantic': ('https://docs.pydantic.dev/latest', None),
}

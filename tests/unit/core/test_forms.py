"""Unit tests for core/forms.py"""

from sitepub.core.forms import SUBMIT_PATH, form_action, generate_contact_form, process_forms


CONTACT_BLOCK = '<pre><code class="language-form">type: contact\n</code></pre>'


def test_form_action_relative_without_endpoint():
    assert form_action("") == SUBMIT_PATH


def test_form_action_joins_endpoint():
    assert form_action("https://api.example.com/") == "https://api.example.com/api/v1/forms/submit"


def test_generate_contact_form_carries_site_id():
    out = generate_contact_form("site-123")
    assert 'name="_site" value="site-123"' in out
    assert f'action="{SUBMIT_PATH}"' in out
    assert 'name="_honeypot"' in out


def test_process_forms_disabled_leaves_html():
    assert process_forms(CONTACT_BLOCK, "site-123", enabled=False) == CONTACT_BLOCK


def test_process_forms_replaces_contact_block():
    out = process_forms(CONTACT_BLOCK, "site-123", "https://api.example.com", enabled=True)
    assert '<form class="clio-form" action="https://api.example.com/api/v1/forms/submit"' in out
    assert "language-form" not in out


def test_process_forms_unknown_type_unchanged():
    block = '<pre><code class="language-form">type: survey\n</code></pre>'
    assert process_forms(block, "site-123", enabled=True) == block

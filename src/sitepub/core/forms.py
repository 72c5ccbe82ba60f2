"""Form blocks: ```form fenced YAML of type contact becomes a contact form"""

import html
from typing import Optional

import yaml

from sitepub.core.codeblocks import replace_code_blocks


SUBMIT_PATH = "/api/v1/forms/submit"

CONTACT_FORM = """<form class="clio-form" action="{action}" method="POST">
  <input type="hidden" name="_site" value="{site_id}">
  <input type="hidden" name="_form" value="contact">
  <input type="text" name="_honeypot" style="display:none" tabindex="-1" autocomplete="off">
  <div class="form-field">
    <label for="cf-name">Name</label>
    <input type="text" id="cf-name" name="name" required>
  </div>
  <div class="form-field">
    <label for="cf-email">Email</label>
    <input type="email" id="cf-email" name="email" required>
  </div>
  <div class="form-field">
    <label for="cf-message">Message</label>
    <textarea id="cf-message" name="message" rows="5" required></textarea>
  </div>
  <button type="submit">Send</button>
  <div class="form-status"></div>
</form>
<script>
(function(){{
  var form = document.querySelector('.clio-form');
  if (!form) return;
  form.addEventListener('submit', function(e) {{
    e.preventDefault();
    var btn = form.querySelector('button[type="submit"]');
    var status = form.querySelector('.form-status');
    btn.disabled = true;
    btn.textContent = 'Sending...';
    status.className = 'form-status';
    status.style.display = 'none';
    fetch(form.action, {{
      method: 'POST',
      headers: {{'Accept': 'application/json'}},
      body: new FormData(form)
    }}).then(function(r) {{
      if (r.ok) {{
        status.className = 'form-status success';
        status.textContent = 'Message sent. Thank you!';
        status.style.display = 'block';
        form.reset();
      }} else {{
        return r.json().then(function(d) {{ throw new Error(d.error || 'Failed'); }});
      }}
    }}).catch(function(err) {{
      status.className = 'form-status error';
      status.textContent = err.message || 'Something went wrong. Please try again.';
      status.style.display = 'block';
    }}).finally(function() {{
      btn.disabled = false;
      btn.textContent = 'Send';
    }});
  }});
}})();
</script>"""


def form_action(endpoint: str = "") -> str:
    """Absolute submit URL under an external endpoint, or the relative path."""
    if not endpoint:
        return SUBMIT_PATH
    return html.escape(endpoint.rstrip("/") + SUBMIT_PATH)


def generate_contact_form(site_id: str, endpoint: str = "") -> str:
    return CONTACT_FORM.format(action=form_action(endpoint), site_id=html.escape(str(site_id)))


def _form_block(site_id: str, endpoint: str):
    def transform(text: str) -> Optional[str]:
        try:
            data = yaml.safe_load(text)
        except yaml.YAMLError:
            return None
        if not isinstance(data, dict) or data.get("type") != "contact":
            return None
        return generate_contact_form(site_id, endpoint)
    return transform


def process_forms(content: str, site_id: str, endpoint: str = "", enabled: bool = False) -> str:
    """Replace ```form blocks of type contact. Disabled forms leave the HTML as is."""
    if not enabled:
        return content
    return replace_code_blocks(content, "form", _form_block(site_id, endpoint))

"""Templates written by 'markguard init'."""

DEFAULT_CONFIG_YAML = """\
# MarkGuard configuration.
# Only single-quoted strings are accepted in this file.

# Target used when 'markguard translate' is called without '--to'.
default_target_lang: 'ZH-HANT'

# Comma-separated terms that are never sent to the backend.
technical_keywords: 'API, SDK, REST, HTTP, JSON, XML, CSS, HTML, JavaScript, TypeScript, Python, React, Vue, Angular, Node.js, npm, Git, GitHub'

# Backend for regular translation: 'deepl', 'google' or 'mock'.
translator: 'deepl'

# 'document' sends the whole text in one call, 'cell' sends every table cell and line on its own.
granularity: 'document'

# Targets that only need script conversion, handled locally by OpenCC.
conversion_targets:
  - 'ZH-HANT'

providers:
  deepl:
    # Falls back to the DEEPL_AUTH_KEY environment variable when empty.
    api_key: ''
    api_type: 'free'
    enable_beta_languages: true
    retry_attempts: 3
    retry_delay: 5
    # Optional: preserve_formatting, split_sentences, tag_handling,
    # formality, glossary_id, style_id, context.
  opencc:
    conversion: 's2twp'
"""

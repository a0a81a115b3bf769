# pqvault

Core building blocks of a secrets vault for API keys: the data model for stored
secrets and projects, provider detection, a credential-injecting HTTP proxy with
SSRF protection, fuzzy search, `.env` generation and vault health reports.

## Installation

```
pip install .
```

For running the tests:

```
pip install ".[test]"
pytest
```

## Modules

- `pqvault.models` — dataclasses `SecretEntry`, `SecretVersion`,
  `RotationPolicy`, `ProjectEntry` and `VaultData`, each with `to_dict` and
  `from_dict` (missing optional fields get their defaults; missing required
  fields raise `ValueError`). `VaultData` also has `to_json` and `from_json`.
  Helpers: `mask_value` (first 4 and last 4 characters, or all stars for 8
  characters or fewer), `auto_categorize` (category from the key name, else
  `"general"`), `category_patterns`, `valid_lifecycle_transition` and
  `lifecycle_states` (`active`, `deprecated`, `disabled`, `archived`).
- `pqvault.providers` — the read-only `PROVIDERS` mapping of built-in
  `ProviderConfig` entries (Anthropic, OpenAI, Brave Search, GitHub, Google
  APIs, Serper.dev, Resend, Cloudflare, Stripe, ElevenLabs); `AuthMethod` with
  the constructors `bearer()`, `basic()`, `header(name)` and `query(name)` and
  an `AuthKind` enum; `detect_provider` (by key name first, then by the
  value's format), `get_provider` and `word_boundary_match`.
- `pqvault.proxy` — `resolve_url` (relative path against a provider's base
  URL, or a full URL), `validate_url` (HTTPS only, no IP literals, no
  `localhost`, `.local` or `.internal` hosts, allowed-domain list with `*.`
  wildcards), `parse_auth_override` (`"bearer"`, `"basic"`, `"header:<name>"`,
  `"query:<name>"`), `inject_auth` (returns new `httpx.Headers` and
  `httpx.URL` carrying the credential), `parse_method` (GET, POST, PUT, PATCH,
  DELETE, HEAD) and the coroutine `execute_proxy`, which sends the request
  through an `httpx.AsyncClient` and returns the status line and body as text,
  summarising binary responses and truncating text bodies at 1 MB. Failures
  raise subclasses of `ProxyError`: `DomainNotAllowed`, `SsrfBlocked`,
  `InvalidUrl`, `InvalidMethod`, `HttpError`, `NoAuthMethod`, `NoBaseUrl`.
- `pqvault.search` — `search_secrets(secrets, query, min_score, limit)` ranks
  secrets by name, category, project and tag matches plus Jaro-Winkler fuzzy
  matching, returning `SearchResult` objects best first; `tokenize` and
  `jaro_winkler` are available on their own.
- `pqvault.env_gen` — `generate_env` renders a project's `.env` text, raising
  `ProjectNotRegisteredError` for an unknown project; `get_project_secrets`
  lists a project's key/value pairs.
- `pqvault.health` — `check_health(vault, today=None)` returns a
  `HealthReport` of expired, soon-expiring, rotation-due, orphaned,
  deprecated, disabled, errored, dead and duplicate keys, with a 0–100
  `KeyHealthScore` per key, worst first. `HealthReport.is_healthy()` is true
  when nothing is expired, due for rotation or in error.

## Example

```python
from pqvault.models import VaultData, SecretEntry, ProjectEntry
from pqvault.env_gen import generate_env
from pqvault.providers import detect_provider

vault = VaultData()
vault.secrets["STRIPE_SECRET_KEY"] = SecretEntry(value="placeholder", projects=["shop"])
vault.projects["shop"] = ProjectEntry(path="/srv/shop", keys=["STRIPE_SECRET_KEY"])

print(detect_provider("STRIPE_SECRET_KEY", "placeholder"))  # stripe
print(generate_env(vault, "shop"))
```

## What this package does not do

It works on vault data held in memory. It does not encrypt, store or load a
vault on disk, keep a master password in a keychain, write an audit log, track
usage or rate limits per key, write `.env` files to disk, or run a server or
command-line tool; there are no commands to run.
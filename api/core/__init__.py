"""
Shared, cross-cutting code for the API.

`core/` contains small building blocks that multiple features use
(DB wiring, settings, logging, error kinds, the media host client). Keep
feature-specific SQL and business logic in the corresponding feature
package (e.g. `cars/`).
"""

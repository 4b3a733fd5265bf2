"""
quotebuilder — Paginated quotation documents with print-ready PDF export

Packages:
    core/       Paths, layout configuration, draft store, single-flight tasks
    forms/      Document model, totals, pagination, page rendering, PDF export
    agents/     External service integrations (AI autofill)
    api/        JSON routes for the editor
"""

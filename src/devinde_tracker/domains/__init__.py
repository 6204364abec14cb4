"""
devinde-tracker — domain facades

Purpose
- One module per tracker section (action plan, business model, market
  analysis, risk clients, invoicing, service catalog) composing the
  generic adapters with entity schemas.
"""

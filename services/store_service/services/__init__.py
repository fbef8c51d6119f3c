"""Store core operations: distance, pricing, order lifecycle, payments."""

"""Read-only reference tables: channel catalog, DMA stations, inventory, templates."""

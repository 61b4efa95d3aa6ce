"""HTTP layer for UTM Connect."""

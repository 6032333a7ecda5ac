"""Only4U storefront and admin backend."""

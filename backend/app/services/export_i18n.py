"""Translation dictionary for report exports (fr/en)."""
from __future__ import annotations

TRANSLATIONS: dict[str, dict[str, str]] = {
    "fr": {
        # Common
        "period": "Période",
        "to": "au",
        "name": "Nom",
        "amount": "Montant",
        "percentage": "Pourcentage",
        "count": "Nombre",
        "total": "Total",
        "month": "Mois",
        "summary": "Résumé",
        "warnings": "Sections indisponibles",
        "unavailable": "Indisponible",

        # Financial report
        "financial_report": "Rapport financier",
        "total_revenue": "Revenus totaux",
        "total_expenses": "Dépenses totales",
        "net_profit": "Bénéfice net",
        "profit_margin": "Marge bénéficiaire (%)",
        "revenue_by_month": "Revenus par mois",
        "revenue": "Revenus",
        "sales": "Ventes",
        "expenses": "Dépenses",
        "profit": "Bénéfice",
        "expenses_by_category": "Dépenses par catégorie",
        "revenue_by_source": "Revenus par source",

        # Product report
        "product_report": "Rapport produits",
        "total_products": "Produits au total",
        "active_products": "Produits actifs",
        "low_stock_products": "Stock faible",
        "out_of_stock_products": "En rupture de stock",
        "top_selling_products": "Meilleures ventes",
        "quantity_sold": "Quantité vendue",
        "products_by_category": "Produits par catégorie",
        "category": "Catégorie",
        "total_value": "Valeur totale",
        "stock_value_by_category": "Valeur du stock par catégorie",
        "stock_quantity": "Quantité en stock",
        "stock_value": "Valeur du stock",

        # Client report
        "client_report": "Rapport clients",
        "total_clients": "Clients au total",
        "new_clients": "Nouveaux clients",
        "active_clients": "Clients actifs",
        "clients_by_city": "Clients par ville",
        "city": "Ville",
        "clients_by_acquisition": "Clients par canal d'acquisition",
        "channel": "Canal",
        "top_spending_clients": "Meilleurs clients",
        "client": "Client",
        "total_spent": "Total dépensé",
        "visits": "Visites",
    },
    "en": {
        # Common
        "period": "Period",
        "to": "to",
        "name": "Name",
        "amount": "Amount",
        "percentage": "Percentage",
        "count": "Count",
        "total": "Total",
        "month": "Month",
        "summary": "Summary",
        "warnings": "Unavailable sections",
        "unavailable": "Unavailable",

        # Financial report
        "financial_report": "Financial Report",
        "total_revenue": "Total Revenue",
        "total_expenses": "Total Expenses",
        "net_profit": "Net Profit",
        "profit_margin": "Profit Margin (%)",
        "revenue_by_month": "Revenue by Month",
        "revenue": "Revenue",
        "sales": "Sales",
        "expenses": "Expenses",
        "profit": "Profit",
        "expenses_by_category": "Expenses by Category",
        "revenue_by_source": "Revenue by Source",

        # Product report
        "product_report": "Product Report",
        "total_products": "Total Products",
        "active_products": "Active Products",
        "low_stock_products": "Low Stock",
        "out_of_stock_products": "Out of Stock",
        "top_selling_products": "Top Selling Products",
        "quantity_sold": "Quantity Sold",
        "products_by_category": "Products by Category",
        "category": "Category",
        "total_value": "Total Value",
        "stock_value_by_category": "Stock Value by Category",
        "stock_quantity": "Stock Quantity",
        "stock_value": "Stock Value",

        # Client report
        "client_report": "Client Report",
        "total_clients": "Total Clients",
        "new_clients": "New Clients",
        "active_clients": "Active Clients",
        "clients_by_city": "Clients by City",
        "city": "City",
        "clients_by_acquisition": "Clients by Acquisition Channel",
        "channel": "Channel",
        "top_spending_clients": "Top Spending Clients",
        "client": "Client",
        "total_spent": "Total Spent",
        "visits": "Visits",
    },
}


def t(lang: str, key: str) -> str:
    """Get translated label. Falls back to French."""
    return TRANSLATIONS.get(lang, TRANSLATIONS["fr"]).get(
        key, TRANSLATIONS["fr"].get(key, key)
    )

"""clientcomptage - a small PostgreSQL time-tracking client.

Inserts worked-hours records into ``public.comptage`` and prints the
daily, monthly and weekly summaries computed by the database.
"""

__version__ = "0.0.1"

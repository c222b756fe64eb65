"""Shell commands exposing Tabulon functionalities.

This module contains the shell commands that can be used to interact with Tabulon.

TAgg (table aggregate)
======================

``tagg`` groups the rows of a CSV file and computes aggregations::

    tagg sales.csv --by Product --agg total=sum:Quantity --agg avg_price=mean:Price

Without ``--by`` the aggregations are computed over all the rows.
Groups are printed in order of first appearance, ``--sort``
orders them by key instead.
"""

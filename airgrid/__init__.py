"""
airgrid package
===============

Analytical core for gridded air-pollution data (1km x 1km cells on the
British national grid).

- Records and datasets are in `airgrid/models.py`.
- Grid <-> lat/lon mapping and the analysis region are in `airgrid/geo.py`.
- The display-cell index is in `airgrid/indices.py`.
- Regional statistics (average, peaks, trends, nearest cell) are in `airgrid/engine.py`.
- PCM CSV loading is in `airgrid/loader.py`.
"""

__version__ = '0.1.0'

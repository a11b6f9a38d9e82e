from stockcheck.models.location import InventoryLocation
from stockcheck.models.stock import StockLevel

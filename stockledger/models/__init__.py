# Reference data
from stockledger.models.masters.reference_models import Part, Lot, Location, StockStatus

# Inventory ledger
from stockledger.models.inventory.stock_balance_models import StockBalance
from stockledger.models.inventory.stock_movement_models import StockMovement

# Document sequences
from stockledger.models.sequences.document_sequence_models import DocumentSequence

# stockledger/constants/sequences.py

PO_NUMBER_SEQ = "po_number_seq"
QC_LOT_NUMBER_SEQ = "qc_lot_number_seq"
RECEIPT_NUMBER_SEQ = "receipt_number_seq"

# sequence name -> document number prefix
DOCUMENT_SEQUENCES = {
    PO_NUMBER_SEQ: "PO",
    QC_LOT_NUMBER_SEQ: "QCL",
    RECEIPT_NUMBER_SEQ: "GRN",
}

DOCUMENT_NUMBER_WIDTH = 6

# BIGINT upper bound, shared by native sequences and the counter table
SEQUENCE_MAX_VALUE = 2**63 - 1

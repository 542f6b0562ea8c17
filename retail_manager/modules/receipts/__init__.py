"""
Receipt helpers: line costing, the printable receipt document and the
warranty watch list.

Submodules are imported directly (``from retail_manager.modules.receipts.document
import ReceiptDocumentComposer``) so that the repositories can use the pure
calculations without pulling in the PDF stack.
"""

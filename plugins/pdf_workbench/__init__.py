"""PDF workbench plugin."""

manifest = {
    "title": "PDF Workbench",
    "summary": "Merge PDFs, or split and trim one PDF with page deletion and rotation.",
    "blueprint": "pdf_workbench",
    "category": "Document Utilities",
}


__all__ = ["manifest"]

"""
Reports Module - patient summary report generation
Aggregates registrations and renders the Word and PDF reports
"""

from app.modules.reports.classifier import Classification, JobClassifier, classify, get_classifier, load_rules
from app.modules.reports.aggregator import aggregate, aggregate_stream, StatisticsAccumulator
from app.modules.reports.word_generator import word_generator, ReportWordGenerator
from app.modules.reports.pdf_generator import pdf_generator, ReportPDFGenerator, PrintEngine, ChromiumPrintEngine, PrintOptions
from app.modules.reports.storage import report_storage, ReportStorage
from app.modules.reports.report_pipeline import report_pipeline, ReportPipeline

__all__ = [
    # Singleton instances (ready to use)
    'word_generator',
    'pdf_generator',
    'report_storage',
    'report_pipeline',

    # Classes (for custom instantiation)
    'JobClassifier',
    'StatisticsAccumulator',
    'ReportWordGenerator',
    'ReportPDFGenerator',
    'PrintEngine',
    'ChromiumPrintEngine',
    'PrintOptions',
    'ReportStorage',
    'ReportPipeline',

    # Functions
    'classify',
    'get_classifier',
    'load_rules',
    'aggregate',
    'aggregate_stream',
    'Classification',
]

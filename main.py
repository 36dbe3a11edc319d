"""
Main entry point for the Forecast Report Generator.
Usage: python main.py --response <model_output.txt> --output <output.pdf> [options]
       python main.py --inventory <inventory.json> [--response <model_output.txt>] [options]
"""

import argparse
import json
import logging
from pathlib import Path
from datetime import datetime
from forecast_report.agents.coordinator_agent import CoordinatorAgent
from forecast_report.config import CONFIG

logger = logging.getLogger(__name__)

def setup_logging(debug: bool) -> None:
    """Configure file and console logging."""
    Path(CONFIG.log_dir).mkdir(parents=True, exist_ok=True)
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.FileHandler(str(Path(CONFIG.log_dir) / 'app.log')),
            logging.StreamHandler()
        ]
    )

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description='Forecast Report Generator - model output to paginated PDF'
    )

    # Inputs
    parser.add_argument(
        '--response', '-r',
        type=str,
        help='Path to a text file holding the raw model response'
    )

    parser.add_argument(
        '--inventory', '-i',
        type=str,
        help='Path to a JSON array of inventory records'
    )

    # Output options
    parser.add_argument(
        '--output', '-o',
        type=str,
        default=str(Path(CONFIG.output_dir) / 'forecast_report.pdf'),
        help='Output PDF file path (default: outputs/forecast_report.pdf)'
    )

    # Branding
    parser.add_argument(
        '--title',
        type=str,
        help='Report title'
    )

    parser.add_argument(
        '--company-name',
        type=str,
        default=CONFIG.branding.company_name,
        help='Company name for report branding'
    )

    parser.add_argument(
        '--page-size',
        type=str,
        default=CONFIG.table.page_size,
        choices=['A4', 'LETTER'],
        help='Page size'
    )

    # System options
    parser.add_argument(
        '--debug',
        action='store_true',
        help='Enable debug mode'
    )
    return parser

def main(argv=None):
    """Main execution entry point."""
    args = build_parser().parse_args(argv)
    setup_logging(args.debug or CONFIG.debug_mode)

    if not args.response and not args.inventory:
        logger.error("Provide --response and/or --inventory")
        return False

    response = ""
    if args.response:
        response_file = Path(args.response)
        if not response_file.exists():
            logger.error(f"Response file not found: {response_file}")
            return False
        response = response_file.read_text(encoding="utf-8")

    records = []
    if args.inventory:
        inventory_file = Path(args.inventory)
        if not inventory_file.exists():
            logger.error(f"Inventory file not found: {inventory_file}")
            return False
        try:
            records = json.loads(inventory_file.read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            logger.error(f"Inventory file is not valid JSON: {str(e)}")
            return False
        if not isinstance(records, list):
            logger.error("Inventory file must contain a JSON array")
            return False

    # Configure system
    CONFIG.branding.company_name = args.company_name
    CONFIG.table.page_size = args.page_size
    CONFIG.debug_mode = args.debug

    task = {
        "task_id": f"report_{datetime.now().timestamp()}",
        "response": response,
        "records": records,
        "title": args.title,
        "output_path": args.output,
    }

    logger.info(f"Starting report generation: {task['task_id']}")

    try:
        coordinator = CoordinatorAgent()
        result = coordinator.execute(task)

        if result.success:
            logger.info("Report generation completed successfully")

            # Print summary
            print("\n" + "="*60)
            print("REPORT GENERATION COMPLETE")
            print("="*60)
            print(f"Task ID: {task['task_id']}")
            print(f"Report ID: {result.data.get('report_id')}")
            print(f"Pages: {result.data.get('page_count')}")
            print(f"Table rows: {result.data.get('rows_drawn')}")
            print(f"Duration: {result.duration_seconds:.2f} seconds")
            print(f"Output: {result.data.get('output_path')}")
            print("="*60 + "\n")

            return True
        else:
            logger.error(f"Report generation failed: {result.error}")
            return False

    except Exception as e:
        logger.error(f"Fatal error: {str(e)}", exc_info=True)
        return False

if __name__ == "__main__":
    import sys
    success = main()
    sys.exit(0 if success else 1)

"""
Data validation for imported product records.

Catalogue imports bypass the API's submission schema, so rows are
checked here before they reach the database.  Products with a missing
name or launch date cannot be stored and are flagged; softer problems
such as short descriptions, non-http URLs, missing tags or an invalid
maker email are recorded as warnings.  A summary report describing the
data quality is returned alongside the validated DataFrame.
"""

from __future__ import annotations

import logging
import re
from typing import Any, Dict, List, Tuple

import pandas as pd  # type: ignore

from .schemas import MAX_TAGS

logger = logging.getLogger(__name__)

URL_RE = re.compile(r'^https?://\S+$', re.IGNORECASE)
EMAIL_RE = re.compile(r'^[^@\s]+@[^@\s]+\.[^@\s]+$')


class ProductValidator:
    """Validate a catalogue of products.

    Each instance tracks summary statistics about the rows it
    processes.  The primary entry point is ``validate_products`` which
    accepts a DataFrame (as produced by :mod:`parsers`) and returns a
    (validated_df, report) tuple.
    """

    def __init__(self) -> None:
        self.validation_results: List[Dict[str, Any]] = []
        self.stats: Dict[str, int] = {
            'total': 0,
            'valid': 0,
            'unusable': 0,
            'missing_name': 0,
            'missing_launch_date': 0,
            'short_description': 0,
            'invalid_url': 0,
            'missing_tags': 0,
            'too_many_tags': 0,
            'invalid_email': 0,
        }

    def validate_products(self, df: pd.DataFrame) -> Tuple[pd.DataFrame, Dict[str, Any]]:
        """Validate each product in a DataFrame.

        Rows that cannot be stored (no name or no launch date) are
        dropped from the returned DataFrame; every other row is kept,
        with its tags trimmed to the first three.

        Args:
            df: DataFrame of products to validate.

        Returns:
            A tuple of (validated DataFrame, report dictionary).
        """
        self.stats['total'] = len(df)
        validated_rows: List[Dict[str, Any]] = []
        for idx, row in df.iterrows():
            validated_row, issues, usable = self.validate_single_product(row.to_dict())
            if issues:
                self.validation_results.append({
                    'row': idx,
                    'name': str(validated_row.get('name') or 'Unknown')[:50],
                    'issues': issues,
                })
            if usable:
                validated_rows.append(validated_row)
            else:
                self.stats['unusable'] += 1
        validated_df = pd.DataFrame(validated_rows, columns=list(df.columns))
        report = self.generate_validation_report()
        logger.info(f"Validated {self.stats['total']} products, quality score {report['quality_score']:.1f}%")
        return validated_df, report

    def validate_single_product(self, product: Dict[str, Any]) -> Tuple[Dict[str, Any], List[str], bool]:
        """Validate a single product dictionary."""
        issues: List[str] = []
        usable = True
        name = str(product.get('name') or '').strip()
        if len(name) < 2:
            issues.append('Missing or too short name')
            self.stats['missing_name'] += 1
            usable = False
        if product.get('launch_date') is None or pd.isna(product.get('launch_date')):
            issues.append('Missing or invalid launch date')
            self.stats['missing_launch_date'] += 1
            usable = False
        description = str(product.get('description') or '').strip()
        if len(description) < 10:
            issues.append('Missing or too short description')
            self.stats['short_description'] += 1
        for field in ('logo_url', 'website_url'):
            url = str(product.get(field) or '').strip()
            if not URL_RE.match(url):
                issues.append(f'Invalid {field}: {url or "empty"}')
                self.stats['invalid_url'] += 1
        tags = product.get('tags') or []
        if not tags:
            issues.append('No tags')
            self.stats['missing_tags'] += 1
        elif len(tags) > MAX_TAGS:
            issues.append(f'{len(tags)} tags, only the first {MAX_TAGS} are kept')
            self.stats['too_many_tags'] += 1
            product['tags'] = list(tags)[:MAX_TAGS]
        email = str(product.get('maker_email') or '').strip()
        if not EMAIL_RE.match(email):
            issues.append(f'Invalid maker email: {email or "empty"}')
            self.stats['invalid_email'] += 1
        if not issues:
            self.stats['valid'] += 1
        return product, issues, usable

    def generate_validation_report(self) -> Dict[str, Any]:
        """Compile a report of validation statistics and recommendations."""
        total = self.stats['total']
        quality_score = (self.stats['valid'] / total * 100) if total > 0 else 0
        report: Dict[str, Any] = {
            'summary': self.stats.copy(),
            'quality_score': quality_score,
            'critical_issues': {
                'unusable_rows': self.stats['unusable'],
                'unusable_rows_pct': (self.stats['unusable'] / total * 100) if total > 0 else 0,
            },
            'recommendations': [],
            'problematic_products': self.validation_results[:10],
        }
        if self.stats['unusable'] > 0:
            report['recommendations'].append(
                f'{self.stats["unusable"]} rows have no name or launch date and will not be imported.'
            )
        if self.stats['invalid_url'] > 0:
            report['recommendations'].append(
                'Some logo or website URLs are not http(s) links; listings will show broken links.'
            )
        if self.stats['too_many_tags'] > 0:
            report['recommendations'].append(
                f'Tags were trimmed to {MAX_TAGS} for {self.stats["too_many_tags"]} products.'
            )
        return report

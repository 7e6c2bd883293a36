#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Place images on a grid of label cells and write PDF and print HTML sheets.
"""

# local repo modules
import label_sheet_builder.cli


if __name__ == "__main__":
	label_sheet_builder.cli.main()

#!/usr/bin/env python3
"""
Gift Composer - Development Runner
"""

import os

from loguru import logger

os.environ.setdefault('FLASK_ENV', 'development')

from giftcomposer import create_app
from giftcomposer.templates import load_layout_templates, missing_base_images


def main():
    app = create_app()

    templates = load_layout_templates(app.config['LAYOUTS_FILE'])
    missing = missing_base_images(templates, app.config['TEMPLATES_DIR'])
    if missing:
        logger.warning(f"Base images missing for layouts: {', '.join(missing)} "
                       f"(add them under {app.config['TEMPLATES_DIR']})")

    app.run(host='0.0.0.0', port=5000, debug=app.config.get('DEBUG', True), threaded=True)


if __name__ == '__main__':
    main()

#!/usr/bin/env python3
'''
Hide messages into PNG files

 $ pngme.py encode image.png ruSt 'secret message' out.png
 $ pngme.py decode out.png ruSt
 $ pngme.py print out.png
 $ pngme.py remove out.png ruSt
'''
import logging
import os
import sys

from pngstash.commands import main


logging.basicConfig(level=logging.INFO if 'DEBUG' not in os.environ else logging.DEBUG)


if __name__ == '__main__':
    sys.exit(main(sys.argv))

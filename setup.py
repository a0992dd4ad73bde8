import os
from setuptools import setup, find_packages

# Read README for long description if available
long_description = ""
if os.path.exists("README.md"):
    with open("README.md", encoding="utf-8") as f:
        long_description = f.read()

setup(
    name='scsi-tool',
    version='0.2.0',
    description='Decoder for SCSI sense data and Device Identification VPD pages.',
    long_description=long_description,
    long_description_content_type='text/markdown',
    author='Ryan Oswalt',
    author_email='your.email@example.com',
    url='',
    package_dir={'': 'src'},
    packages=find_packages('src'),
    python_requires='>=3.9',

    install_requires=[],

    extras_require={
        'test': ['pytest>=7'],
    },

    include_package_data=True,

    entry_points={
        'console_scripts': [
            'scsi-decode=scsi_tool.cli:run',
        ],
    },

    classifiers=[
        'Programming Language :: Python :: 3.9',
        'Programming Language :: Python :: 3.10',
        'Programming Language :: Python :: 3.11',
        'Operating System :: OS Independent',
        'License :: OSI Approved :: MIT License',
    ],
)

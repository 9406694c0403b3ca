#!python


__project__ = "alphamz"
__version__ = "0.3.0"
__license__ = "Apache"
__description__ = "Peak detection, mobilogram binning and isotope pattern scoring for mass spectrometry data"
__author__ = "Mann Labs"
__author_email__ = "opensource@alphapept.com"
__github__ = "https://github.com/MannLabs/alphamz"
__keywords__ = [
    "bioinformatics",
    "mass spectrometry",
    "isotope pattern",
    "ion mobility",
]
__python_version__ = ">=3.10"
__classifiers__ = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Science/Research",
    "License :: OSI Approved :: Apache Software License",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Topic :: Scientific/Engineering :: Bio-Informatics",
]
__urls__ = {
    "Mann Labs at MPIB": "https://www.biochem.mpg.de/mann",
    "GitHub": __github__,
}

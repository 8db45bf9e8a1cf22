'''
Command line entry point: loads a TSV file of crowdsourced text labels, validates it, builds the vocabulary, runs
BCCWords (or BCC with --no-words) and prints the results.

    bccwords sample_data.txt
    bccwords -i data/tweets.txt --num-classes 5 --label-names weather --output predictions.csv
'''
import logging
import os
import sys
import time
from argparse import ArgumentParser

from bccwords.bccwords import BCC, BCCWords
from bccwords.config import LABEL_NAMES, Settings
from bccwords.data.datum import load_data
from bccwords.data.validator import validate_data, validate_processed_texts, print_validation_results
from bccwords.errors import BCCWordsError
from bccwords.results import ResultsWords, build_vocabulary_on_subdata
from bccwords.text.tfidf import TFIDFProcessor


def build_parser():
    parser = ArgumentParser(description='BCCWords: Bayesian classifier combination with words. Infers the true '
                                        'labels of text items from crowdsourced labels while learning each '
                                        'worker\'s reliability and the words that indicate each class.')
    parser.add_argument('input_file', nargs='?', help='TSV file with the fields WorkerId, TaskId, WorkerLabel, '
                                                      'BodyText and an optional GoldLabel.')
    parser.add_argument('-i', '--input', dest='input_option', help='Alternative way to give the input file.')
    parser.add_argument('--config', help='INI file with [model], [vocabulary] and [output] sections.')
    parser.add_argument('--num-classes', type=int, help='Number of label classes. Defaults to the size of the label '
                                                         'names table, or two.')
    parser.add_argument('--initial-worker-belief', type=float, help='Prior probability that a worker gives the '
                                                                     'correct label, between 0 and 1.')
    parser.add_argument('--iterations', type=int, help='Number of variational Bayes sweeps.')
    parser.add_argument('--vocabulary-size', type=int, help='Maximum number of vocabulary terms. 0 means no limit.')
    parser.add_argument('--stop-words', help='File with one stop word per line. Defaults to the scikit-learn '
                                             'English stop words.')
    parser.add_argument('--top-words', type=int, help='Number of words to print for each class.')
    parser.add_argument('--label-names', choices=sorted(LABEL_NAMES), help='Names to print for the classes.')
    parser.add_argument('--majority-vote', action='store_true', help='Clamp each task to its majority vote.')
    parser.add_argument('--no-words', action='store_true', help='Ignore the text and run BCC on the labels only.')
    parser.add_argument('--output', help='Write the predictions and class probabilities to this CSV file.')
    parser.add_argument('-y', '--yes', action='store_true', help='Continue without asking when the data has '
                                                                  'warnings.')
    parser.add_argument('-v', '--verbose', action='store_true', help='Print debugging messages.')
    return parser


def _confirm(prompt='Continue anyway? (y/n): '):
    try:
        response = input(prompt)
    except EOFError:
        return False
    return response.strip().lower() in ('y', 'yes')


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO)

    input_file = args.input_option if args.input_option is not None else args.input_file
    if input_file is None:
        parser.print_help()
        return 1

    try:
        settings = Settings(args.config, num_classes=args.num_classes,
                            initial_worker_belief=args.initial_worker_belief, num_iterations=args.iterations,
                            vocabulary_size=args.vocabulary_size, stop_words_file=args.stop_words,
                            top_words=args.top_words, label_names=args.label_names)
        if settings.num_classes is None and settings.label_names is not None:
            settings.num_classes = len(LABEL_NAMES[settings.label_names])

        print('================================')
        print('BCCWords: Bayesian Text Sentiment Analysis')
        print('Using Crowdsourced Annotations')
        print('================================\n')

        print('[1/5] Loading data from %s...' % os.path.basename(input_file))
        if not os.path.isfile(input_file):
            raise FileNotFoundError(input_file)
        data = load_data(input_file, num_classes=settings.num_classes)
        print('      Loaded %i data points' % len(data))

        print('\n[2/5] Validating data quality...')
        label_values = None if settings.num_classes is None else set(range(settings.num_classes))
        validation_result = validate_data(data, label_values)

        if not validation_result.is_valid:
            print_validation_results(validation_result)
            print('\nPlease fix the data errors and try again.')
            return 1

        if validation_result.warnings:
            print_validation_results(validation_result)
            if not args.yes and not _confirm():
                print('Aborted by user.')
                return 0
            print()
        else:
            print('      All validation checks passed')

        processor = TFIDFProcessor(settings.stop_words_file)

        print('\n[3/5] Building vocabulary from data subset...')
        vocabulary = [] if args.no_words else build_vocabulary_on_subdata(data, processor, settings)
        print('      Vocabulary size: %i terms\n' % len(vocabulary))

        print('[4/5] Creating %s model and running inference...' % ('BCC' if args.no_words else 'BCCWords'))
        results = ResultsWords(data, vocabulary, settings, processor, settings.num_classes)

        if not args.no_words:
            text_result = validate_processed_texts(results.mapping.get_processed_texts())
            if text_result.warnings:
                logging.warning('%i of %i texts have fewer than two vocabulary terms' % (
                    text_result.total_records - text_result.valid_records, text_result.total_records))

        if args.no_words:
            model = BCC(settings.initial_worker_belief, verbose=args.verbose)
        else:
            model = BCCWords(settings.initial_worker_belief, verbose=args.verbose)

        start = time.time()
        results.run_bccwords(model, calculate_accuracy=True, use_majority_vote=args.majority_vote)
        print('      Inference complete in %.2f seconds\n' % (time.time() - start))

        print('[5/5] Outputting results...\n')
        print('================================')
        print('RESULTS')
        print('================================\n')
        results.write_results(sys.stdout, write_worker_parameters=args.verbose, write_prob_words=True,
                              top_words=settings.top_words)

        if args.output is not None:
            results.to_dataframe().to_csv(args.output, index=False)
            print('\nPredictions written to %s' % args.output)

        print('\n================================')
        print('Analysis Complete!')
        print('================================')

    except FileNotFoundError as e:
        print('\nERROR: File not found - %s' % e)
        print('Please ensure the input file exists and the path is correct.')
        return 1
    except (BCCWordsError, ValueError) as e:
        print('\nERROR: %s' % e)
        logging.debug('Run failed', exc_info=True)
        return 1

    return 0


if __name__ == '__main__':
    sys.exit(main())
